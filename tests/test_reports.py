"""Tests for report emitters and defect-tracker notification."""

from pathlib import Path

import pytest
from conftest import RecordingClient

from zapgate.config.models import (
    DefectTrackerSettings,
    DetailMask,
    ExportMetadata,
    ReportMethod,
    ReportSettings,
    SeverityMask,
)
from zapgate.errors import ClientApiError
from zapgate.modules.report import ReportEmitter, ReportFormat


@pytest.mark.asyncio
async def test_save_report_writes_under_reports(workspace: Path, executor, buildlog):
    client = RecordingClient({"core/xmlreport": b"<OWASPZAPReport/>"})

    dest = await ReportEmitter(client, executor, workspace, buildlog).save_report(ReportFormat.XML, "report")

    assert dest == workspace / "reports" / "report.xml"
    assert dest.read_bytes() == b"<OWASPZAPReport/>"
    assert client.named("core/xmlreport")[0].category == "other"


@pytest.mark.asyncio
async def test_emit_default_formats(workspace: Path, client, executor, buildlog):
    reports = ReportSettings(enabled=True, filename="scan", formats=("html", "json"))

    ok, written = await ReportEmitter(client, executor, workspace, buildlog).emit(reports)

    assert ok is True
    assert [p.name for p in written] == ["scan.html", "scan.json"]


@pytest.mark.asyncio
async def test_emit_continues_after_a_failed_format(workspace: Path, executor, buildlog):
    client = RecordingClient({"core/htmlreport": ClientApiError("boom")})
    reports = ReportSettings(enabled=True, filename="scan", formats=("html", "md"))

    ok, written = await ReportEmitter(client, executor, workspace, buildlog).emit(reports)

    assert ok is False
    assert [p.name for p in written] == ["scan.md"]


@pytest.mark.asyncio
async def test_export_skips_unadvertised_formats(workspace: Path, executor, buildlog):
    client = RecordingClient({"exportreport/formats": {"formats": ["pdf", "xml"]}})
    emitter = ReportEmitter(client, executor, workspace, buildlog)

    ok = await emitter.export_report(
        ("pdf", "xhtml"),
        "nightly",
        ExportMetadata(title="Nightly", by="CI", for_="Team"),
        SeverityMask(informational=True),
        DetailMask(),
    )

    assert ok is True
    calls = client.named("exportreport/generate")
    assert len(calls) == 1
    assert calls[0].params == {
        "absolutePath": str(workspace / "reports" / "nightly"),
        "fileExtension": "pdf",
        "sourceDetails": "Nightly;CI;Team;;;;;",
        "alertSeverity": "t;t;t;t",
        "alertDetails": "t;t;t;t;t;t;f;f;f;f;",
    }
    assert buildlog.contains("FORMAT [ xhtml ] IS NOT SUPPORTED")


@pytest.mark.asyncio
async def test_export_fail_result(workspace: Path, executor, buildlog):
    client = RecordingClient({"exportreport/generate": {"Result": "FAIL"}})
    reports = ReportSettings(
        enabled=True,
        method=ReportMethod.EXPORT,
        filename="nightly",
        export_formats=("xml", "html"),
        export=ExportMetadata(title="Nightly"),
    )

    ok, _ = await ReportEmitter(client, executor, workspace, buildlog).emit(reports)

    assert ok is False
    assert len(client.named("exportreport/generate")) == 2


def test_delete_previous_reports(workspace: Path, executor, buildlog):
    reports_dir = workspace / "reports"
    reports_dir.mkdir()
    for path in (workspace / "old.xml", reports_dir / "old.html", reports_dir / "old.pdf", workspace / "keep.txt"):
        path.write_text("x")

    removed = ReportEmitter(RecordingClient(), executor, workspace, buildlog).delete_previous_reports()

    assert sorted(p.name for p in removed) == ["old.html", "old.pdf", "old.xml"]
    assert (workspace / "keep.txt").exists()


@pytest.mark.asyncio
async def test_emit_disabled_makes_no_calls(workspace: Path, client, executor, buildlog):
    ok, written = await ReportEmitter(client, executor, workspace, buildlog).emit(ReportSettings())

    assert (ok, written) == (True, [])
    assert client.calls == []


@pytest.mark.asyncio
async def test_defect_issues(workspace: Path, client, executor, buildlog):
    tracker = DefectTrackerSettings(
        enabled=True, base_url="https://jira.example", project_key="SEC", high=True, medium=True, low=False
    )

    ok = await ReportEmitter(client, executor, workspace, buildlog).create_defect_issues(tracker)

    assert ok is True
    params = client.named("jiraIssueCreater/createJiraIssues")[0].params
    assert (params["high"], params["medium"], params["low"]) == ("1", "1", "0")
    assert params["projectKey"] == "SEC"


@pytest.mark.asyncio
async def test_defect_issue_failure_is_not_raised(workspace: Path, executor, buildlog):
    client = RecordingClient({"jiraIssueCreater/createJiraIssues": ClientApiError("jira down")})
    tracker = DefectTrackerSettings(enabled=True, base_url="https://jira.example")

    ok = await ReportEmitter(client, executor, workspace, buildlog).create_defect_issues(tracker)

    assert ok is False
    assert buildlog.contains("JIRA ISSUE CREATION FAILED")
