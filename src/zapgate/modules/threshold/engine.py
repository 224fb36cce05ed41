"""Weighted alert thresholds and the resulting build verdict."""

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from zapgate.config.models import ThresholdConfig


class Severity(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    INFORMATIONAL = "Informational"


class Verdict(str, Enum):
    PASS = "pass"
    UNSTABLE = "unstable"
    FAIL = "fail"


_RISK_CODES = {"3": Severity.HIGH, "2": Severity.MEDIUM, "1": Severity.LOW, "0": Severity.INFORMATIONAL}


def alert_severity(alert: Mapping[str, Any]) -> Severity | None:
    """Read the severity from ``risk`` (name) or ``riskcode`` (0-3)."""
    risk = str(alert.get("risk") or "").strip().lower()
    for severity in Severity:
        if severity.value.lower() == risk:
            return severity
    if risk == "info":
        return Severity.INFORMATIONAL
    return _RISK_CODES.get(str(alert.get("riskcode", "")).strip())


def alert_identifier(alert: Mapping[str, Any]) -> str:
    for key in ("alert", "alertRef", "pluginId"):
        value = str(alert.get(key) or "").strip()
        if value:
            return value
    return ""


def count_alerts_by_severity(alerts: Iterable[Mapping[str, Any]]) -> dict[Severity, int]:
    """Count distinct alerts per severity; repeats of one alert count once per bucket."""
    seen: dict[Severity, set[str]] = {severity: set() for severity in Severity}
    for alert in alerts:
        severity = alert_severity(alert)
        if severity is None:
            continue
        seen[severity].add(alert_identifier(alert))
    return {severity: len(ids) for severity, ids in seen.items()}


def scaled_counts(config: ThresholdConfig, counts: Mapping[Severity, int]) -> dict[Severity, float]:
    limits = {
        Severity.HIGH: config.high,
        Severity.MEDIUM: config.medium,
        Severity.LOW: config.low,
        Severity.INFORMATIONAL: config.informational,
    }
    return {severity: limits[severity].weight * counts.get(severity, 0) for severity in Severity}


def evaluate(config: ThresholdConfig, counts: Mapping[Severity, int]) -> Verdict:
    """
    Apply weights and soft limits.

    FAIL when the scaled High count or the scaled total exceeds its limit;
    otherwise UNSTABLE when any lower severity exceeds its own limit.
    """
    scaled = scaled_counts(config, counts)
    if scaled[Severity.HIGH] > config.high.soft_limit:
        return Verdict.FAIL
    if sum(scaled.values()) > config.cumulative:
        return Verdict.FAIL
    lower = (
        (Severity.MEDIUM, config.medium),
        (Severity.LOW, config.low),
        (Severity.INFORMATIONAL, config.informational),
    )
    if any(scaled[severity] > limit.soft_limit for severity, limit in lower):
        return Verdict.UNSTABLE
    return Verdict.PASS
