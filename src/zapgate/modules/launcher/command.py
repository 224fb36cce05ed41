"""Scanner install lookup, command line and environment."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from zapgate.config.macros import expand_macros
from zapgate.config.models import CommandLineArg, InstallSpec, ToolInstallation
from zapgate.errors import ConfigurationError
from zapgate.modules.zapapi.client import API_KEY

_EXECUTABLES = {"unix": "zap.sh", "windows": "zap.bat"}
_SEPARATORS = {"unix": "/", "windows": "\\"}
_PATH_SEPARATORS = {"unix": ":", "windows": ";"}


@dataclass(frozen=True)
class LaunchPlan:
    """Everything needed to start the scanner on an executor."""

    install_dir: str
    command: list[str]
    env: dict[str, str]

    @property
    def cwd(self) -> str:
        return self.install_dir


def resolve_install_dir(
    install: InstallSpec,
    tools: Sequence[ToolInstallation],
    node_name: str,
    env: Mapping[str, str],
) -> str:
    """Locate the scanner home from the tools registry or an environment variable."""
    if install.auto_install:
        tool = next((t for t in tools if t.name == install.tool_name), None)
        if tool is None:
            raise ConfigurationError("tool_name", install.tool_name, "IS NOT A REGISTERED INSTALLATION")
        home = expand_macros(tool.home_for(node_name), env)
    else:
        home = env.get(install.env_var, "")
    home = home.strip()
    if not home:
        source = install.tool_name if install.auto_install else install.env_var
        raise ConfigurationError("ZAP INSTALLATION DIRECTORY", source)
    return home


def executable_path(install_dir: str, os_family: str) -> str:
    sep = _SEPARATORS[os_family]
    return install_dir.rstrip("/\\") + sep + _EXECUTABLES[os_family]


def build_command(
    install_dir: str,
    os_family: str,
    host: str,
    port: int,
    settings_dir: str = "",
    extras: Sequence[CommandLineArg] = (),
) -> list[str]:
    command = [
        executable_path(install_dir, os_family),
        "-daemon",
        "-host",
        host,
        "-port",
        str(port),
        "-config",
        f"api.key={API_KEY}",
    ]
    if settings_dir:
        command += ["-dir", settings_dir]
    for arg in extras:
        if arg.option:
            command.append(arg.option)
        if arg.value:
            command.append(arg.value)
    return command


def _find_key(env: Mapping[str, str], name: str, case_insensitive: bool) -> str | None:
    if not case_insensitive:
        return name if name in env else None
    return next((key for key in env if key.upper() == name.upper()), None)


def scanner_environment(
    base: Mapping[str, str],
    build_vars: Mapping[str, str],
    os_family: str,
    java_home: str = "",
) -> dict[str, str]:
    """Merge build variables over the host environment and apply ``java_home``."""
    windows = os_family == "windows"
    env = dict(base)
    for name, value in build_vars.items():
        existing = _find_key(env, name, windows)
        if existing is not None:
            del env[existing]
        env[name] = value

    if java_home:
        existing = _find_key(env, "JAVA_HOME", windows)
        if existing is not None:
            del env[existing]
        env["JAVA_HOME"] = java_home
        path_key = _find_key(env, "PATH", windows) or "PATH"
        java_bin = java_home.rstrip("/\\") + _SEPARATORS[os_family] + "bin"
        current = env.get(path_key, "")
        env[path_key] = java_bin + (_PATH_SEPARATORS[os_family] + current if current else "")
    return env
