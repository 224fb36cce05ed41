"""Alert-filter rule files (``<settings_dir>/alertfilters/<name>.alertfilter``)."""

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path

from zapgate.errors import ConfigurationError

ALERT_FILTERS_DIR = "alertfilters"
ALERT_FILTER_EXTENSION = ".alertfilter"


@dataclass(frozen=True)
class AlertFilterRule:
    rule_id: str
    new_level: str
    url: str = ""
    url_is_regex: bool = False
    parameter: str = ""
    enabled: bool = True


def resolve_filter_path(reference: str, settings_dir: str, exists) -> Path:
    """An existing path wins; otherwise look the name up in the settings directory."""
    candidate = Path(reference).expanduser()
    if exists(candidate):
        return candidate
    return Path(settings_dir).expanduser() / ALERT_FILTERS_DIR / f"{reference}{ALERT_FILTER_EXTENSION}"


def _child_text(elem: ET.Element, tag: str) -> str:
    child = elem.find(tag)
    if child is None or child.text is None:
        return ""
    return child.text.strip()


def _truthy(text: str, default: bool) -> bool:
    if not text:
        return default
    return text.lower() in {"true", "1", "yes"}


def parse_alert_filters(xml_data: str) -> list[AlertFilterRule]:
    """Parse every ``<alertfilter>`` record in the document."""
    try:
        root = ET.fromstring(xml_data)
    except ET.ParseError as exc:
        raise ConfigurationError("alert_filters", str(exc), "IS NOT VALID XML") from exc

    rules = []
    for elem in root.iter("alertfilter"):
        rule_id = _child_text(elem, "ruleId")
        if not rule_id:
            continue
        rules.append(
            AlertFilterRule(
                rule_id=rule_id,
                new_level=_child_text(elem, "newLevel"),
                url=_child_text(elem, "url"),
                url_is_regex=_truthy(_child_text(elem, "urlIsRegex"), False),
                parameter=_child_text(elem, "parameter"),
                enabled=_truthy(_child_text(elem, "enabled"), True),
            )
        )
    return rules
