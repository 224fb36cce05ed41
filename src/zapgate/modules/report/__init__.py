"""Report and defect-tracker output."""

from .emitters import REPORTS_DIR, ReportEmitter
from .formats import EXPORT_FORMATS, KNOWN_EXTENSIONS, ReportFormat, parse_format

__all__ = [
    "EXPORT_FORMATS",
    "KNOWN_EXTENSIONS",
    "REPORTS_DIR",
    "ReportEmitter",
    "ReportFormat",
    "parse_format",
]
