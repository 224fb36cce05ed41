"""Scan context, scope and authentication setup."""

from .alert_filters import AlertFilterRule, parse_alert_filters, resolve_filter_path
from .auth import auth_method_params, credential_params
from .configurator import ContextConfigurator, ContextResult

__all__ = [
    "AlertFilterRule",
    "ContextConfigurator",
    "ContextResult",
    "auth_method_params",
    "credential_params",
    "parse_alert_filters",
    "resolve_filter_path",
]
