"""Environment variable and configuration file loading."""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

GLOBAL_CONFIG_ENV = "ZAPGATE_CONFIG"


def global_config_path() -> Path:
    """Return the global config location (``~/.zapgate/config.yml`` unless overridden)."""
    override = os.environ.get(GLOBAL_CONFIG_ENV)
    if override:
        return Path(override)
    return Path.home() / ".zapgate" / "config.yml"


def load_env_file(env_path: Path) -> dict[str, str]:
    """Load environment variables from .env file."""
    env_vars = {}
    if env_path.exists():
        with open(env_path) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    # Remove quotes if present
                    value = value.strip().strip("\"'")
                    env_vars[key.strip()] = value
    return env_vars


def load_global_config(path: Path | None = None) -> dict[str, Any]:
    """Load global defaults shared by every job on this machine."""
    config_path = path or global_config_path()
    if config_path.exists():
        with open(config_path) as f:
            return yaml.safe_load(f) or {}
    return {}


def load_job_file(job_path: Path) -> dict[str, Any]:
    """Load a job description; an empty file yields an empty mapping."""
    with open(job_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Job file {job_path} must contain a mapping at the top level")
    return data


def parse_build_vars(pairs: list[str] | None) -> dict[str, str]:
    """Turn ``KEY=VALUE`` command-line pairs into a mapping."""
    variables: dict[str, str] = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise ValueError(f"Build variable must be KEY=VALUE, got {pair!r}")
        key, value = pair.split("=", 1)
        variables[key.strip()] = value
    return variables


def build_environment(
    workspace: Path,
    build_vars: Mapping[str, str] | None = None,
    base: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """
    Merge the variables visible to a build step.

    Priority (lowest to highest): workspace ``.env`` file, process
    environment, build variables.
    """
    merged = load_env_file(workspace / ".env")
    merged.update(os.environ if base is None else base)
    merged.update(build_vars or {})
    merged.setdefault("WORKSPACE", str(workspace))
    return merged
