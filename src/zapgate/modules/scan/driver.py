"""
Orchestrates one scan against a ready scanner.

Order: required add-ons, session, context/auth, phases, reports, defect
tracker, summary. Shutdown always runs last, whatever happened before it.
"""

import logging
from pathlib import Path

from zapgate.config.models import ReportMethod, ScanConfig, SessionMode
from zapgate.errors import ClientApiError, ScanAborted
from zapgate.modules.context.configurator import ContextConfigurator
from zapgate.modules.launcher.executor import RemoteExecutor
from zapgate.modules.report.emitters import ReportEmitter
from zapgate.modules.zapapi.client import ZapClient
from zapgate.utils.buildlog import BuildLog

from .cancel import CancelToken
from .models import DriverOutcome
from .phases import PhaseRunner

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_DIR = "~/.ZAP"
PLUGIN_DIR = "plugin"
SESSION_EXTENSION = ".session"
EXPORT_ADDON = "exportreport"
DEFECT_TRACKER_ADDON = "jiraIssueCreater"


def settings_home(settings_dir: str) -> Path:
    return Path(settings_dir or DEFAULT_SETTINGS_DIR).expanduser()


def session_file_path(workspace: Path, filename: str) -> Path:
    path = workspace / filename
    if path.suffix != SESSION_EXTENSION:
        path = path.with_name(path.name + SESSION_EXTENSION)
    return path


def load_session_path(workspace: Path, load_path: str) -> Path:
    path = Path(load_path).expanduser()
    return path if path.is_absolute() else workspace / path


class ScanDriver:
    def __init__(
        self,
        config: ScanConfig,
        client: ZapClient,
        executor: RemoteExecutor,
        workspace: Path,
        log: BuildLog,
        cancel: CancelToken | None = None,
    ):
        self.config = config
        self.client = client
        self.executor = executor
        self.workspace = workspace
        self.log = log
        self.cancel = cancel or CancelToken()

    def check_required_addons(self) -> bool:
        required = []
        if self.config.reports.enabled and self.config.reports.method is ReportMethod.EXPORT:
            required.append(EXPORT_ADDON)
        if self.config.defect_tracker.enabled:
            required.append(DEFECT_TRACKER_ADDON)
        if not required:
            return True

        plugin_dir = settings_home(self.config.scanner.settings_dir) / PLUGIN_DIR
        installed = [path.name for path in self.executor.list_files(plugin_dir)]
        ok = True
        for addon in required:
            if any(addon in name for name in installed):
                self.log.step("REQUIRED ADD-ON [ {} ] INSTALLED", addon)
            else:
                ok = False
                self.log.error("REQUIRED ADD-ON [ {} ] IS MISSING FROM [ {} ]", addon, plugin_dir)
        return ok

    async def prepare_session(self, outcome: DriverOutcome) -> None:
        """Exactly one of loadSession / saveSession."""
        session = self.config.session
        if session.mode is SessionMode.LOAD:
            path = load_session_path(self.workspace, session.load_path)
            self.log.step("LOAD SESSION [ {} ]", path)
            await self.client.load_session(str(path))
            outcome.session_path = str(path)
            return

        path = session_file_path(self.workspace, session.filename)
        self.executor.make_dirs(path.parent)
        self.log.step("PERSIST SESSION [ {} ]", path)
        await self.client.save_session(str(path), overwrite=True)
        outcome.session_path = str(path)

        if session.remove_external_sites and not await self.remove_external_sites():
            outcome.success = False

    async def remove_external_sites(self) -> bool:
        internal = [site.lower() for site in self.config.session.internal_site_list()]
        ok = True
        self.log.step("REMOVE EXTERNAL SITES")
        for site in await self.client.sites():
            if site.lower() in internal:
                continue
            try:
                await self.client.delete_site_node(site)
                self.log.detail("REMOVED [ {} ]", site)
            except ClientApiError as exc:
                ok = False
                self.log.error("SITE [ {} ] COULD NOT BE REMOVED: {}", site, exc)
        return ok

    async def _summary(self, outcome: DriverOutcome) -> None:
        outcome.total_alerts = await self.client.number_of_alerts()
        outcome.total_messages = await self.client.number_of_messages()
        self.log.step("TOTAL ALERTS [ {} ]", outcome.total_alerts)
        self.log.step("TOTAL MESSAGES [ {} ]", outcome.total_messages)

    async def shutdown(self, outcome: DriverOutcome) -> None:
        self.log.step("SHUTDOWN [ START ]")
        outcome.shutdown_calls += 1
        try:
            await self.client.shutdown()
        except ClientApiError as exc:
            outcome.success = False
            self.log.error("SHUTDOWN FAILED: {}", exc)
            return
        self.log.step("SHUTDOWN [ COMPLETE ]")

    async def run(self) -> DriverOutcome:
        outcome = DriverOutcome()
        config = self.config
        try:
            if not self.check_required_addons():
                outcome.success = False
            await self.prepare_session(outcome)

            configurator = ContextConfigurator(self.client, self.executor, self.log)
            settings_dir = str(settings_home(config.scanner.settings_dir))
            context = await configurator.configure(config.context, config.auth, settings_dir)
            outcome.context_id = context.context_id
            if not context.success:
                outcome.success = False

            runner = PhaseRunner(self.client, self.log, config.polling, cancel=self.cancel)
            outcome.phases.append(
                await runner.run_spider(
                    config.spider, config.target_url, config.context.name, context.context_id, context.user_id
                )
            )
            outcome.phases.append(
                await runner.run_ajax_spider(config.ajax_spider, config.target_url, config.context.name)
            )
            outcome.phases.append(
                await runner.run_active_scan(config.active_scan, config.target_url, context.context_id, context.user_id)
            )

            emitter = ReportEmitter(self.client, self.executor, self.workspace, self.log)
            reports_ok, outcome.reports = await emitter.emit(config.reports)
            if not reports_ok:
                outcome.success = False
            await emitter.create_defect_issues(config.defect_tracker)

            await self._summary(outcome)
        except ScanAborted as exc:
            outcome.aborted = True
            outcome.success = False
            self.log.error("BUILD ABORTED: {}", str(exc) or "cancelled")
        except Exception as exc:
            outcome.success = False
            self.log.exception(exc)
        finally:
            await self.shutdown(outcome)
        return outcome
