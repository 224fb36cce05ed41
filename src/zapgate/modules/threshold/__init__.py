"""Post-build threshold evaluation."""

from .engine import Severity, Verdict, count_alerts_by_severity, evaluate, scaled_counts

__all__ = ["Severity", "Verdict", "count_alerts_by_severity", "evaluate", "scaled_counts"]
