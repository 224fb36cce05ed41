"""
Build a validated ``ScanConfig`` from a job file.

Every string is macro-expanded against the merged build environment first;
each decision is echoed to the build log as an ``(EXP)`` line so a CI user can
see what the variables resolved to.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from zapgate.errors import ConfigurationError
from zapgate.modules.report.formats import EXPORT_FORMATS, ReportFormat
from zapgate.utils.buildlog import BuildLog

from .env_loader import build_environment, load_global_config, load_job_file
from .macros import expand_tree, unexpanded_fields
from .models import (
    DEFAULT_CONTEXT_NAME,
    DEFAULT_INSTALL_ENV,
    ActiveScanSettings,
    AjaxSpiderSettings,
    AuthBlock,
    CommandLineArg,
    ContextSettings,
    DefectTrackerSettings,
    DetailMask,
    ExportMetadata,
    FormBasedAuth,
    InstallSpec,
    PollingSettings,
    ReportMethod,
    ReportSettings,
    ScanConfig,
    ScannerSettings,
    ScriptBasedAuth,
    ScriptParam,
    SessionMode,
    SessionSettings,
    SeverityLimit,
    SeverityMask,
    SpiderSettings,
    ThresholdConfig,
    ToolInstallation,
)

_SECRET_KEYS = frozenset({"password"})

_FORM_NAMES = {"form", "form_based", "formbased", "formbasedauthentication"}
_SCRIPT_NAMES = {"script", "script_based", "scriptbased", "scriptbasedauthentication"}


def _section(raw: Mapping[str, Any], key: str) -> dict[str, Any]:
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigurationError(key, value, "MUST BE A MAPPING")
    return value


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _bool(name: str, value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in {"true", "yes", "1", "on"}:
        return True
    if normalized in {"false", "no", "0", "off", ""}:
        return False
    raise ConfigurationError(name, value, "IS NOT A BOOLEAN")


def _int(name: str, value: Any, default: int | None = None) -> int:
    if value is None or value == "":
        if default is None:
            raise ConfigurationError(name, value)
        return default
    try:
        return int(str(value).strip())
    except ValueError as exc:
        raise ConfigurationError(name, value, "IS NOT A NUMBER") from exc


def _float(name: str, value: Any, default: float | None) -> float | None:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(name, value, "IS NOT A NUMBER") from exc


def _lines(value: Any) -> str:
    """Accept either newline-delimited text or a YAML list."""
    if isinstance(value, list):
        return "\n".join(_text(item) for item in value)
    return _text(value)


def _formats(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    items = value if isinstance(value, list) else str(value).replace(",", " ").split()
    return tuple(_text(item).lower() for item in items if _text(item))


class ConfigLoader:
    """Turns an expanded job mapping into a ``ScanConfig``."""

    def __init__(self, global_config: Mapping[str, Any] | None = None, log: BuildLog | None = None):
        self.global_config = global_config or {}
        self.log = log

    def _exp(self, label: str, value: Any) -> None:
        if self.log is not None:
            self.log.step("(EXP) {} = [ {} ]", label, value)

    # -- scanner ------------------------------------------------------------

    def _scanner(self, raw: Mapping[str, Any]) -> ScannerSettings:
        section = _section(raw, "scanner")
        defaults = _section(self.global_config, "scanner")

        host = _text(section.get("host")) or _text(defaults.get("default_host"))
        if not host:
            raise ConfigurationError("host", host)
        self._exp("HOST", host)

        port_value = section.get("port")
        if port_value in (None, ""):
            port_value = defaults.get("default_port")
        port = _int("port", port_value)
        if not 0 < port < 65536:
            raise ConfigurationError("port", port, "IS OUT OF RANGE")
        self._exp("PORT", port)

        timeout = _int("timeout", section.get("timeout"), default=60)
        if timeout <= 0:
            raise ConfigurationError("timeout", timeout, "MUST BE POSITIVE")

        auto_install = _bool("auto_install", section.get("auto_install"))
        tool_name = _text(section.get("tool_name"))
        env_var = _text(section.get("install_env")) or DEFAULT_INSTALL_ENV
        if auto_install and not tool_name:
            raise ConfigurationError("tool_name", tool_name)

        command_line = []
        for index, item in enumerate(section.get("command_line") or []):
            if not isinstance(item, dict):
                raise ConfigurationError(f"command_line[{index}]", item, "MUST BE A MAPPING")
            command_line.append(CommandLineArg(_text(item.get("option")), _text(item.get("value"))))

        join_timeout = _float("join_timeout", section.get("join_timeout"), 3600.0)

        return ScannerSettings(
            host=host,
            port=port,
            timeout=timeout,
            install=InstallSpec(env_var=env_var, auto_install=auto_install, tool_name=tool_name),
            settings_dir=_text(section.get("settings_dir")),
            java_home=_text(section.get("java_home")),
            command_line=tuple(command_line),
            start_first=_bool("start_first", section.get("start_first")),
            join_timeout=join_timeout or 3600.0,
        )

    # -- session / context --------------------------------------------------

    def _session(self, raw: Mapping[str, Any], start_first: bool) -> SessionSettings:
        section = _section(raw, "session")
        mode_text = _text(section.get("mode")).lower() or SessionMode.PERSIST.value
        try:
            mode = SessionMode(mode_text)
        except ValueError as exc:
            raise ConfigurationError("session.mode", mode_text, "IS NOT load OR persist") from exc

        if start_first and mode is SessionMode.LOAD:
            raise ConfigurationError(
                "session.mode", mode.value, "IS INVALID: LOADED SESSION FILES CANNOT BE USED IN PRE-BUILD"
            )

        settings = SessionSettings(
            mode=mode,
            load_path=_text(section.get("load_path")),
            filename=_text(section.get("filename")),
            remove_external_sites=_bool("remove_external_sites", section.get("remove_external_sites")),
            internal_sites=_lines(section.get("internal_sites")),
        )

        if mode is SessionMode.LOAD:
            if not settings.load_path:
                raise ConfigurationError("session.load_path", settings.load_path)
            self._exp("LOAD SESSION", settings.load_path)
        else:
            if not settings.filename:
                raise ConfigurationError("session.filename", settings.filename)
            self._exp("SESSION FILENAME", settings.filename)
            if settings.remove_external_sites:
                if not settings.internal_site_list():
                    raise ConfigurationError("session.internal_sites", settings.internal_sites)
                self._exp("INTERNAL SITES", ", ".join(settings.internal_site_list()))
        return settings

    def _context(self, raw: Mapping[str, Any]) -> ContextSettings:
        section = _section(raw, "context")
        settings = ContextSettings(
            name=_text(section.get("name")) or DEFAULT_CONTEXT_NAME,
            include=_lines(section.get("include")),
            exclude=_lines(section.get("exclude")),
            alert_filters=_text(section.get("alert_filters")),
        )
        self._exp("CONTEXT NAME", settings.name)
        if not settings.include_patterns():
            raise ConfigurationError("context.include", settings.include)
        self._exp("INCLUDE IN CONTEXT", ", ".join(settings.include_patterns()))
        if settings.exclude_patterns():
            self._exp("EXCLUDE FROM CONTEXT", ", ".join(settings.exclude_patterns()))
        return settings

    def _auth(self, raw: Mapping[str, Any]) -> AuthBlock | None:
        section = _section(raw, "authentication")
        if not section or not _bool("authentication.enabled", section.get("enabled"), default=True):
            return None

        method = _text(section.get("method")).lower()
        username = _text(section.get("username"))
        password = "" if section.get("password") is None else str(section.get("password"))
        if not username:
            raise ConfigurationError("authentication.username", username)
        indicators = {
            "logged_in_indicator": _text(section.get("logged_in_indicator")),
            "logged_out_indicator": _text(section.get("logged_out_indicator")),
        }

        if method in _FORM_NAMES:
            login_url = _text(section.get("login_url"))
            if not login_url:
                raise ConfigurationError("authentication.login_url", login_url)
            self._exp("AUTH METHOD", FormBasedAuth.method_name)
            return FormBasedAuth(
                username=username,
                password=password,
                login_url=login_url,
                username_parameter=_text(section.get("username_parameter")) or "username",
                password_parameter=_text(section.get("password_parameter")) or "password",
                extra_post_data=_text(section.get("extra_post_data")),
                **indicators,
            )

        if method in _SCRIPT_NAMES:
            script_name = _text(section.get("script_name"))
            if not script_name:
                raise ConfigurationError("authentication.script_name", script_name)
            params = tuple(
                ScriptParam(_text(item.get("name")), _text(item.get("value")))
                for item in section.get("script_params") or []
                if isinstance(item, dict) and _text(item.get("name"))
            )
            self._exp("AUTH METHOD", ScriptBasedAuth.method_name)
            return ScriptBasedAuth(
                username=username,
                password=password,
                script_name=script_name,
                script_params=params,
                **indicators,
            )

        raise ConfigurationError("authentication.method", method, "IS NOT form OR script")

    # -- phases -------------------------------------------------------------

    def _phases(self, raw: Mapping[str, Any]) -> tuple[SpiderSettings, AjaxSpiderSettings, ActiveScanSettings]:
        spider = _section(raw, "spider")
        ajax = _section(raw, "ajax_spider")
        ascan = _section(raw, "active_scan")
        return (
            SpiderSettings(
                enabled=_bool("spider.enabled", spider.get("enabled")),
                recurse=_bool("spider.recurse", spider.get("recurse"), default=True),
                subtree_only=_bool("spider.subtree_only", spider.get("subtree_only")),
                max_children=_int("spider.max_children", spider.get("max_children"), default=0),
            ),
            AjaxSpiderSettings(
                enabled=_bool("ajax_spider.enabled", ajax.get("enabled")),
                in_scope_only=_bool("ajax_spider.in_scope_only", ajax.get("in_scope_only"), default=True),
            ),
            ActiveScanSettings(
                enabled=_bool("active_scan.enabled", ascan.get("enabled")),
                recurse=_bool("active_scan.recurse", ascan.get("recurse"), default=True),
                policy=_text(ascan.get("policy")),
            ),
        )

    def _polling(self, raw: Mapping[str, Any]) -> PollingSettings:
        section = _section(raw, "polling")
        interval = _float("polling.interval", section.get("interval"), 5.0)
        if interval is None or interval < 0:
            raise ConfigurationError("polling.interval", interval, "MUST NOT BE NEGATIVE")
        return PollingSettings(interval=interval, timeout=_float("polling.timeout", section.get("timeout"), None))

    # -- outputs ------------------------------------------------------------

    def _reports(self, raw: Mapping[str, Any]) -> ReportSettings:
        section = _section(raw, "reports")
        if not _bool("reports.enabled", section.get("enabled")):
            return ReportSettings()

        method_text = _text(section.get("method")).lower() or ReportMethod.DEFAULT.value
        try:
            method = ReportMethod(method_text)
        except ValueError as exc:
            raise ConfigurationError("reports.method", method_text, "IS NOT default OR export") from exc

        filename = _text(section.get("filename"))
        if not filename:
            raise ConfigurationError("reports.filename", filename)
        self._exp("REPORT FILENAME", filename)

        formats = _formats(section.get("formats"))
        export_formats = _formats(section.get("export_formats"))
        export = _section(section, "export")
        metadata = ExportMetadata(
            title=_text(export.get("title")),
            by=_text(export.get("by")),
            for_=_text(export.get("for")),
            scan_date=_text(export.get("scan_date")),
            report_date=_text(export.get("report_date")),
            scan_version=_text(export.get("scan_version")),
            report_version=_text(export.get("report_version")),
            description=_text(export.get("description")),
        )

        if method is ReportMethod.DEFAULT:
            if not formats:
                raise ConfigurationError("reports.formats", list(formats), "MUST LIST AT LEAST ONE FORMAT")
            known = {f.value for f in ReportFormat}
            for fmt in formats:
                if fmt not in known:
                    raise ConfigurationError("reports.formats", fmt, "IS NOT A KNOWN FORMAT")
            self._exp("REPORT FORMATS", ", ".join(formats))
        else:
            if not export_formats:
                raise ConfigurationError(
                    "reports.export_formats", list(export_formats), "MUST LIST AT LEAST ONE FORMAT"
                )
            for fmt in export_formats:
                if fmt not in EXPORT_FORMATS:
                    raise ConfigurationError("reports.export_formats", fmt, "IS NOT A KNOWN FORMAT")
            if not metadata.title:
                raise ConfigurationError("reports.export.title", metadata.title)
            if ";" in metadata.title:
                raise ConfigurationError("reports.export.title", metadata.title, "MUST NOT CONTAIN ';'")
            self._exp("EXPORT FORMATS", ", ".join(export_formats))

        severity = _section(section, "severity")
        details = _section(section, "details")
        detail_defaults = DetailMask()
        return ReportSettings(
            enabled=True,
            method=method,
            delete_previous=_bool("reports.delete_previous", section.get("delete_previous")),
            filename=filename,
            formats=formats,
            export_formats=export_formats,
            export=metadata,
            severity=SeverityMask(
                high=_bool("reports.severity.high", severity.get("high"), default=True),
                medium=_bool("reports.severity.medium", severity.get("medium"), default=True),
                low=_bool("reports.severity.low", severity.get("low"), default=True),
                informational=_bool("reports.severity.informational", severity.get("informational")),
            ),
            details=DetailMask(
                **{
                    name: _bool(f"reports.details.{name}", details.get(name), default=getattr(detail_defaults, name))
                    for name in DetailMask.__dataclass_fields__
                }
            ),
        )

    def _defect_tracker(self, raw: Mapping[str, Any]) -> DefectTrackerSettings:
        section = _section(raw, "defect_tracker")
        if not _bool("defect_tracker.enabled", section.get("enabled")):
            return DefectTrackerSettings()
        defaults = _section(self.global_config, "defect_tracker")

        def _pick(key: str) -> str:
            value = section.get(key)
            if value is None:
                value = defaults.get(key)
            return "" if value is None else str(value)

        base_url = _pick("base_url").strip()
        if not base_url:
            raise ConfigurationError("defect_tracker.base_url", base_url)
        self._exp("JIRA BASE URL", base_url)
        return DefectTrackerSettings(
            enabled=True,
            base_url=base_url,
            username=_pick("username").strip(),
            password=_pick("password"),
            project_key=_text(section.get("project_key")),
            assignee=_text(section.get("assignee")),
            high=_bool("defect_tracker.high", section.get("high"), default=True),
            medium=_bool("defect_tracker.medium", section.get("medium")),
            low=_bool("defect_tracker.low", section.get("low")),
            filter_by_resource_type=_bool(
                "defect_tracker.filter_by_resource_type", section.get("filter_by_resource_type")
            ),
        )

    def _thresholds(self, raw: Mapping[str, Any]) -> ThresholdConfig:
        section = _section(raw, "thresholds")
        defaults = ThresholdConfig()

        def _limit(name: str, fallback: SeverityLimit) -> SeverityLimit:
            entry = _section(section, name)
            return SeverityLimit(
                weight=_float(f"thresholds.{name}.weight", entry.get("weight"), fallback.weight),
                soft_limit=_float(f"thresholds.{name}.soft_limit", entry.get("soft_limit"), fallback.soft_limit),
            )

        return ThresholdConfig(
            enabled=_bool("thresholds.enabled", section.get("enabled")),
            high=_limit("high", defaults.high),
            medium=_limit("medium", defaults.medium),
            low=_limit("low", defaults.low),
            informational=_limit("informational", defaults.informational),
            cumulative=_float("thresholds.cumulative", section.get("cumulative"), defaults.cumulative),
        )

    def _tools(self, raw: Mapping[str, Any]) -> tuple[ToolInstallation, ...]:
        tools: dict[str, ToolInstallation] = {}
        # Job entries override global entries with the same name.
        for source in (self.global_config.get("tools") or [], raw.get("tools") or []):
            for item in source:
                if not isinstance(item, dict) or not _text(item.get("name")):
                    continue
                nodes = item.get("nodes") or {}
                tool = ToolInstallation(
                    name=_text(item.get("name")),
                    home=_text(item.get("home")),
                    nodes=tuple((str(node), _text(home)) for node, home in nodes.items()),
                )
                tools[tool.name] = tool
        return tuple(tools.values())

    # -- entry point --------------------------------------------------------

    def load(self, raw: Mapping[str, Any], env: Mapping[str, str]) -> ScanConfig:
        """Expand macros, reject leftovers, and validate every section."""
        expanded = expand_tree(dict(raw), env)
        leftovers = unexpanded_fields(expanded, skip=_SECRET_KEYS)
        if leftovers:
            raise ConfigurationError(leftovers[0], "unexpanded placeholder", "HAS AN UNRESOLVED VARIABLE")

        scanner = self._scanner(expanded)
        session = self._session(expanded, scanner.start_first)
        context = self._context(expanded)
        auth = self._auth(expanded)

        target_url = _text(expanded.get("target_url"))
        if not target_url:
            raise ConfigurationError("target_url", target_url)
        self._exp("TARGET URL", target_url)

        spider, ajax_spider, active_scan = self._phases(expanded)
        return ScanConfig(
            scanner=scanner,
            target_url=target_url,
            session=session,
            context=context,
            auth=auth,
            spider=spider,
            ajax_spider=ajax_spider,
            active_scan=active_scan,
            polling=self._polling(expanded),
            reports=self._reports(expanded),
            defect_tracker=self._defect_tracker(expanded),
            thresholds=self._thresholds(expanded),
            tools=self._tools(expanded),
        )


def load_scan_config(
    job_path: Path,
    workspace: Path,
    build_vars: Mapping[str, str] | None = None,
    log: BuildLog | None = None,
    global_config: Mapping[str, Any] | None = None,
) -> tuple[ScanConfig, dict[str, str]]:
    """Load a job file and return the config with the environment it was expanded against."""
    env = build_environment(workspace, build_vars)
    loader = ConfigLoader(global_config if global_config is not None else load_global_config(), log)
    return loader.load(load_job_file(job_path), env), env
