"""Report formats known to the scanner."""

from enum import Enum


class ReportFormat(str, Enum):
    """Built-in formats rendered by ``/OTHER/core/other/<fmt>report/``."""

    XML = "xml"
    HTML = "html"
    JSON = "json"
    MD = "md"


# Extra formats the export add-on may advertise.
EXPORT_FORMATS = ("xml", "xhtml", "json", "pdf", "html", "md")

KNOWN_EXTENSIONS = tuple(sorted({f.value for f in ReportFormat} | set(EXPORT_FORMATS)))


def parse_format(value: str) -> ReportFormat:
    try:
        return ReportFormat(value.strip().lower())
    except ValueError as exc:
        raise ValueError(f"Unknown report format: {value}") from exc
