"""Write scan reports and push findings to the defect tracker."""

import logging
from pathlib import Path

from zapgate.config.models import (
    DefectTrackerSettings,
    DetailMask,
    ExportMetadata,
    ReportMethod,
    ReportSettings,
    SeverityMask,
)
from zapgate.errors import ClientApiError
from zapgate.modules.launcher.executor import RemoteExecutor
from zapgate.modules.zapapi.client import ZapClient
from zapgate.utils.buildlog import BuildLog

from .formats import KNOWN_EXTENSIONS, ReportFormat, parse_format

logger = logging.getLogger(__name__)

REPORTS_DIR = "reports"
EXPORT_FAILED = "FAIL"


class ReportEmitter:
    """Renders reports through the scanner and stores them under ``<workspace>/reports``."""

    def __init__(self, client: ZapClient, executor: RemoteExecutor, workspace: Path, log: BuildLog):
        self.client = client
        self.executor = executor
        self.workspace = workspace
        self.log = log

    @property
    def reports_dir(self) -> Path:
        return self.workspace / REPORTS_DIR

    def delete_previous_reports(self) -> list[Path]:
        """Remove old report files from the workspace root and ``reports/``."""
        removed = []
        for directory in (self.workspace, self.reports_dir):
            for path in self.executor.list_files(directory):
                if any(f".{ext}" in path.name for ext in KNOWN_EXTENSIONS):
                    self.executor.delete_file(path)
                    removed.append(path)
                    self.log.detail("DELETED [ {} ]", path)
        return removed

    async def save_report(self, fmt: ReportFormat, filename: str) -> Path:
        dest = self.reports_dir / f"{filename}.{fmt.value}"
        data = await self.client.core_report(fmt.value)
        self.executor.make_dirs(dest.parent)
        self.executor.write_bytes(dest, data)
        self.log.detail("SAVED REPORT [ {} ]", dest)
        return dest

    async def export_report(
        self,
        formats: tuple[str, ...],
        filename: str,
        metadata: ExportMetadata,
        severity: SeverityMask,
        details: DetailMask,
    ) -> bool:
        """Generate one export per advertised format; returns False if any export failed."""
        try:
            advertised = set(await self.client.export_formats())
        except ClientApiError as exc:
            self.log.error("EXPORT FORMATS UNAVAILABLE: {}", exc)
            return False

        ok = True
        self.executor.make_dirs(self.reports_dir)
        prefix = str(self.reports_dir / filename)
        for fmt in formats:
            if fmt not in advertised:
                self.log.warning("FORMAT [ {} ] IS NOT SUPPORTED BY THE EXPORT ADD-ON, SKIPPED", fmt)
                continue
            try:
                result = await self.client.export_generate(
                    prefix, fmt, metadata.source_details(), severity.as_mask(), details.as_mask()
                )
            except ClientApiError as exc:
                ok = False
                self.log.error("EXPORT [ {} ] FAILED: {}", fmt, exc)
                continue
            if result.strip().upper() == EXPORT_FAILED:
                ok = False
                self.log.error("EXPORT [ {} ] FAILED", fmt)
            else:
                self.log.detail("EXPORTED REPORT [ {}.{} ]", prefix, fmt)
        return ok

    async def emit(self, reports: ReportSettings) -> tuple[bool, list[Path]]:
        """Produce every configured report. Individual failures do not stop the rest."""
        if not reports.enabled:
            self.log.step("SKIP GENERATE REPORTS")
            return True, []

        if reports.delete_previous:
            self.log.step("DELETE PREVIOUS REPORTS")
            self.delete_previous_reports()

        self.log.step("GENERATE REPORTS [ {} ]", reports.method.value)
        if reports.method is ReportMethod.EXPORT:
            ok = await self.export_report(
                reports.export_formats, reports.filename, reports.export, reports.severity, reports.details
            )
            return ok, []

        ok = True
        written = []
        for name in reports.formats:
            try:
                written.append(await self.save_report(parse_format(name), reports.filename))
            except (ClientApiError, OSError) as exc:
                ok = False
                self.log.error("REPORT [ {} ] FAILED: {}", name, exc)
        return ok, written

    async def create_defect_issues(self, tracker: DefectTrackerSettings) -> bool:
        """Create tracker issues for the selected severities; failures are reported, never raised."""
        if not tracker.enabled:
            return True
        self.log.step("CREATE JIRA ISSUES [ {} ]", tracker.base_url)
        self.log.detail("PROJECT [ {} ] ASSIGNEE [ {} ]", tracker.project_key, tracker.assignee)
        try:
            await self.client.create_jira_issues(
                tracker.base_url,
                tracker.username,
                tracker.password,
                tracker.project_key,
                tracker.assignee,
                tracker.high,
                tracker.medium,
                tracker.low,
                tracker.filter_by_resource_type,
            )
        except ClientApiError as exc:
            logger.debug("defect tracker call failed", exc_info=True)
            self.log.error("JIRA ISSUE CREATION FAILED: {}", exc)
            return False
        return True
