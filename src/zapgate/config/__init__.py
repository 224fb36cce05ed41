"""
Configuration management for zapgate.

Sources in order of priority:
1. ``--var KEY=VALUE`` build variables (highest priority)
2. Process environment
3. Workspace .env file
4. Global config file (~/.zapgate/config.yml) for scanner defaults,
   defect-tracker credentials and the tools registry
5. Default values (lowest priority)
"""

from .env_loader import (
    build_environment,
    global_config_path,
    load_env_file,
    load_global_config,
    load_job_file,
    parse_build_vars,
)
from .loader import ConfigLoader, load_scan_config
from .macros import expand_macros, find_placeholders
from .models import (
    AuthBlock,
    FormBasedAuth,
    ReportMethod,
    ScanConfig,
    ScriptBasedAuth,
    SessionMode,
    ThresholdConfig,
)

__all__ = [
    # env_loader
    "build_environment",
    "global_config_path",
    "load_env_file",
    "load_global_config",
    "load_job_file",
    "parse_build_vars",
    # loader
    "ConfigLoader",
    "load_scan_config",
    # macros
    "expand_macros",
    "find_placeholders",
    # models
    "AuthBlock",
    "FormBasedAuth",
    "ReportMethod",
    "ScanConfig",
    "ScriptBasedAuth",
    "SessionMode",
    "ThresholdConfig",
]
