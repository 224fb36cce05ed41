"""Immutable job configuration tree built once per build step."""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar

DEFAULT_CONTEXT_NAME = "Default Context"
DEFAULT_INSTALL_ENV = "ZAPROXY_HOME"


def split_lines(text: str) -> list[str]:
    """Split newline-delimited text into trimmed, non-blank entries."""
    return [line.strip() for line in text.splitlines() if line.strip()]


@dataclass(frozen=True)
class CommandLineArg:
    """Extra scanner command-line option; empty halves are dropped."""

    option: str = ""
    value: str = ""


@dataclass(frozen=True)
class ToolInstallation:
    """Registered scanner installation, with optional per-node home overrides."""

    name: str
    home: str
    nodes: tuple[tuple[str, str], ...] = ()

    def home_for(self, node_name: str) -> str:
        for node, home in self.nodes:
            if node == node_name:
                return home
        return self.home


@dataclass(frozen=True)
class InstallSpec:
    env_var: str = DEFAULT_INSTALL_ENV
    auto_install: bool = False
    tool_name: str = ""


@dataclass(frozen=True)
class ScannerSettings:
    host: str
    port: int
    timeout: int = 60
    install: InstallSpec = field(default_factory=InstallSpec)
    settings_dir: str = ""
    java_home: str = ""
    command_line: tuple[CommandLineArg, ...] = ()
    start_first: bool = False
    join_timeout: float = 3600.0


class SessionMode(str, Enum):
    LOAD = "load"
    PERSIST = "persist"


@dataclass(frozen=True)
class SessionSettings:
    mode: SessionMode = SessionMode.PERSIST
    load_path: str = ""
    filename: str = ""
    remove_external_sites: bool = False
    internal_sites: str = ""

    def internal_site_list(self) -> list[str]:
        return split_lines(self.internal_sites)


@dataclass(frozen=True)
class ContextSettings:
    name: str = DEFAULT_CONTEXT_NAME
    include: str = ""
    exclude: str = ""
    alert_filters: str = ""

    def include_patterns(self) -> list[str]:
        return split_lines(self.include)

    def exclude_patterns(self) -> list[str]:
        return split_lines(self.exclude)


@dataclass(frozen=True)
class FormBasedAuth:
    """Login form posted by the scanner before each authenticated request."""

    username: str
    password: str
    login_url: str
    username_parameter: str = "username"
    password_parameter: str = "password"
    extra_post_data: str = ""
    logged_in_indicator: str = ""
    logged_out_indicator: str = ""

    method_name: ClassVar[str] = "formBasedAuthentication"
    credential_keys: ClassVar[tuple[str, str]] = ("username", "password")


@dataclass(frozen=True)
class ScriptParam:
    name: str
    value: str = ""


@dataclass(frozen=True)
class ScriptBasedAuth:
    """Authentication delegated to a script installed in the scanner."""

    username: str
    password: str
    script_name: str
    script_params: tuple[ScriptParam, ...] = ()
    logged_in_indicator: str = ""
    logged_out_indicator: str = ""

    method_name: ClassVar[str] = "scriptBasedAuthentication"
    credential_keys: ClassVar[tuple[str, str]] = ("Username", "Password")


AuthBlock = FormBasedAuth | ScriptBasedAuth


@dataclass(frozen=True)
class SpiderSettings:
    enabled: bool = False
    recurse: bool = True
    subtree_only: bool = False
    max_children: int = 0


@dataclass(frozen=True)
class AjaxSpiderSettings:
    enabled: bool = False
    in_scope_only: bool = True


@dataclass(frozen=True)
class ActiveScanSettings:
    enabled: bool = False
    recurse: bool = True
    policy: str = ""


@dataclass(frozen=True)
class PollingSettings:
    interval: float = 5.0
    timeout: float | None = None


class ReportMethod(str, Enum):
    DEFAULT = "default"
    EXPORT = "export"


@dataclass(frozen=True)
class ExportMetadata:
    title: str = ""
    by: str = ""
    for_: str = ""
    scan_date: str = ""
    report_date: str = ""
    scan_version: str = ""
    report_version: str = ""
    description: str = ""

    def source_details(self) -> str:
        return ";".join(
            [
                self.title,
                self.by,
                self.for_,
                self.scan_date,
                self.report_date,
                self.scan_version,
                self.report_version,
                self.description,
            ]
        )


def _flag(value: bool) -> str:
    return "t" if value else "f"


@dataclass(frozen=True)
class SeverityMask:
    high: bool = True
    medium: bool = True
    low: bool = True
    informational: bool = False

    def as_mask(self) -> str:
        return ";".join(_flag(v) for v in (self.high, self.medium, self.low, self.informational))


@dataclass(frozen=True)
class DetailMask:
    cwe_id: bool = True
    wasc_id: bool = True
    description: bool = True
    other_info: bool = True
    solution: bool = True
    reference: bool = True
    request_header: bool = False
    response_header: bool = False
    request_body: bool = False
    response_body: bool = False

    def as_mask(self) -> str:
        values = (
            self.cwe_id,
            self.wasc_id,
            self.description,
            self.other_info,
            self.solution,
            self.reference,
            self.request_header,
            self.response_header,
            self.request_body,
            self.response_body,
        )
        return "".join(f"{_flag(v)};" for v in values)


@dataclass(frozen=True)
class ReportSettings:
    enabled: bool = False
    method: ReportMethod = ReportMethod.DEFAULT
    delete_previous: bool = False
    filename: str = ""
    formats: tuple[str, ...] = ()
    export_formats: tuple[str, ...] = ()
    export: ExportMetadata = field(default_factory=ExportMetadata)
    severity: SeverityMask = field(default_factory=SeverityMask)
    details: DetailMask = field(default_factory=DetailMask)


@dataclass(frozen=True)
class DefectTrackerSettings:
    enabled: bool = False
    base_url: str = ""
    username: str = ""
    password: str = ""
    project_key: str = ""
    assignee: str = ""
    high: bool = True
    medium: bool = False
    low: bool = False
    filter_by_resource_type: bool = False


@dataclass(frozen=True)
class SeverityLimit:
    weight: float
    soft_limit: float


@dataclass(frozen=True)
class ThresholdConfig:
    """Weights and soft limits used by the post-build verdict."""

    enabled: bool = False
    high: SeverityLimit = SeverityLimit(10, 0)
    medium: SeverityLimit = SeverityLimit(5, 50)
    low: SeverityLimit = SeverityLimit(1, 100)
    informational: SeverityLimit = SeverityLimit(0, 1000)
    cumulative: float = 60


@dataclass(frozen=True)
class ScanConfig:
    scanner: ScannerSettings
    target_url: str
    session: SessionSettings = field(default_factory=SessionSettings)
    context: ContextSettings = field(default_factory=ContextSettings)
    auth: AuthBlock | None = None
    spider: SpiderSettings = field(default_factory=SpiderSettings)
    ajax_spider: AjaxSpiderSettings = field(default_factory=AjaxSpiderSettings)
    active_scan: ActiveScanSettings = field(default_factory=ActiveScanSettings)
    polling: PollingSettings = field(default_factory=PollingSettings)
    reports: ReportSettings = field(default_factory=ReportSettings)
    defect_tracker: DefectTrackerSettings = field(default_factory=DefectTrackerSettings)
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    tools: tuple[ToolInstallation, ...] = ()
