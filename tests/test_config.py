"""Tests for job configuration loading and validation."""

from pathlib import Path

import pytest

from zapgate.config import (
    ConfigLoader,
    FormBasedAuth,
    ReportMethod,
    ScriptBasedAuth,
    SessionMode,
    build_environment,
    expand_macros,
    find_placeholders,
    load_env_file,
    load_scan_config,
    parse_build_vars,
)
from zapgate.errors import ConfigurationError


def job(**overrides):
    data = {
        "scanner": {"host": "127.0.0.1", "port": 8090},
        "session": {"mode": "persist", "filename": "sessions/run"},
        "context": {"name": "C1", "include": "https://example.com/.*"},
        "target_url": "https://example.com",
    }
    data.update(overrides)
    return data


def load(raw, env=None, global_config=None, log=None):
    return ConfigLoader(global_config or {}, log).load(raw, env or {})


class TestMacros:
    def test_known_names_are_replaced(self):
        assert expand_macros("${HOST}:$PORT", {"HOST": "zap", "PORT": "8090"}) == "zap:8090"

    def test_unknown_names_stay(self):
        assert expand_macros("${MISSING}/x", {}) == "${MISSING}/x"
        assert find_placeholders("${MISSING}/x") == ["${MISSING}"]

    def test_bare_reference_is_a_placeholder(self):
        assert find_placeholders("https://$UNKNOWN_HOST/") == ["$UNKNOWN_HOST"]
        assert find_placeholders(r"^https://example.com/\$Version$") == []


class TestConfigLoader:
    def test_minimal_job(self, buildlog):
        config = load(job(), log=buildlog)

        assert config.scanner.host == "127.0.0.1"
        assert config.scanner.port == 8090
        assert config.scanner.timeout == 60
        assert config.session.mode is SessionMode.PERSIST
        assert config.context.include_patterns() == ["https://example.com/.*"]
        assert config.auth is None
        assert config.polling.interval == 5.0
        assert config.polling.timeout is None
        assert buildlog.contains("(EXP) HOST = [ 127.0.0.1 ]")

    def test_variables_are_expanded(self):
        raw = job(scanner={"host": "${ZAP_HOST}", "port": "$ZAP_PORT"})

        config = load(raw, env={"ZAP_HOST": "10.0.0.5", "ZAP_PORT": "9090"})

        assert config.scanner.host == "10.0.0.5"
        assert config.scanner.port == 9090

    def test_leftover_placeholder_is_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load(job(target_url="https://${APP_HOST}/"))

        assert exc_info.value.field == "target_url"

    def test_leftover_bare_reference_is_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load(job(target_url="https://$UNKNOWN_HOST/"))

        assert exc_info.value.field == "target_url"

    def test_password_may_contain_placeholder_text(self):
        raw = job(
            authentication={
                "method": "form",
                "username": "bob",
                "password": "p${x}",
                "login_url": "https://example.com/login",
            }
        )

        assert load(raw).auth.password == "p${x}"

    def test_host_from_global_defaults(self):
        raw = job(scanner={})

        config = load(raw, global_config={"scanner": {"default_host": "zap.local", "default_port": 8080}})

        assert (config.scanner.host, config.scanner.port) == ("zap.local", 8080)

    def test_missing_host(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load(job(scanner={"port": 8090}))

        assert str(exc_info.value).startswith("HOST IS MISSING")

    def test_load_session_rejected_when_started_first(self):
        raw = job(
            scanner={"host": "h", "port": 1, "start_first": True},
            session={"mode": "load", "load_path": "old.session"},
        )

        with pytest.raises(ConfigurationError) as exc_info:
            load(raw)

        assert "LOADED SESSION FILES CANNOT BE USED IN PRE-BUILD" in str(exc_info.value)

    def test_persist_requires_filename(self):
        with pytest.raises(ConfigurationError):
            load(job(session={"mode": "persist"}))

    def test_load_requires_path(self):
        with pytest.raises(ConfigurationError):
            load(job(session={"mode": "load"}))

    def test_external_site_removal_requires_internal_sites(self):
        with pytest.raises(ConfigurationError):
            load(job(session={"filename": "s", "remove_external_sites": True}))

    def test_default_context_name(self):
        config = load(job(context={"include": ["https://a/.*", " ", "https://b/.*"]}))

        assert config.context.name == "Default Context"
        assert config.context.include_patterns() == ["https://a/.*", "https://b/.*"]

    def test_include_required(self):
        with pytest.raises(ConfigurationError):
            load(job(context={"name": "C1"}))

    def test_target_url_required(self):
        raw = job()
        del raw["target_url"]

        with pytest.raises(ConfigurationError):
            load(raw)

    def test_default_reports_need_a_format(self):
        with pytest.raises(ConfigurationError):
            load(job(reports={"enabled": True, "filename": "report"}))

    def test_export_title_may_not_contain_semicolon(self):
        raw = job(
            reports={
                "enabled": True,
                "method": "export",
                "filename": "report",
                "export_formats": ["pdf"],
                "export": {"title": "a;b"},
            }
        )

        with pytest.raises(ConfigurationError):
            load(raw)

    def test_export_reports(self):
        raw = job(
            reports={
                "enabled": True,
                "method": "export",
                "filename": "report",
                "export_formats": "pdf, xml",
                "export": {"title": "Nightly", "by": "CI"},
            }
        )

        reports = load(raw).reports

        assert reports.method is ReportMethod.EXPORT
        assert reports.export_formats == ("pdf", "xml")
        assert reports.export.source_details() == "Nightly;CI;;;;;;"
        assert reports.severity.as_mask() == "t;t;t;f"
        assert reports.details.as_mask() == "t;t;t;t;t;t;f;f;f;f;"

    def test_defect_tracker_credentials_from_global(self):
        raw = job(defect_tracker={"enabled": True, "project_key": "SEC"})
        global_config = {"defect_tracker": {"base_url": "https://jira.example", "username": "ci"}}

        tracker = load(raw, global_config=global_config).defect_tracker

        assert tracker.base_url == "https://jira.example"
        assert tracker.username == "ci"
        assert tracker.password == ""

    def test_defect_tracker_requires_base_url(self):
        with pytest.raises(ConfigurationError):
            load(job(defect_tracker={"enabled": True}))

    def test_form_auth(self):
        raw = job(
            authentication={
                "method": "FORM_BASED",
                "username": "bob",
                "password": "pw",
                "login_url": "https://example.com/login",
                "logged_in_indicator": "Logout",
            }
        )

        auth = load(raw).auth

        assert isinstance(auth, FormBasedAuth)
        assert auth.credential_keys == ("username", "password")
        assert auth.logged_in_indicator == "Logout"

    def test_script_auth(self):
        raw = job(
            authentication={
                "method": "script",
                "username": "bob",
                "password": "pw",
                "script_name": "login.js",
                "script_params": [{"name": "Target", "value": "https://example.com"}],
            }
        )

        auth = load(raw).auth

        assert isinstance(auth, ScriptBasedAuth)
        assert auth.credential_keys == ("Username", "Password")
        assert auth.script_params[0].name == "Target"

    def test_thresholds(self):
        raw = job(thresholds={"enabled": True, "high": {"weight": 3, "soft_limit": 1}, "cumulative": 20})

        thresholds = load(raw).thresholds

        assert thresholds.enabled is True
        assert (thresholds.high.weight, thresholds.high.soft_limit) == (3, 1)
        assert thresholds.medium.weight == 5
        assert thresholds.cumulative == 20

    def test_job_tools_override_global(self):
        raw = job(tools=[{"name": "zap", "home": "/job/zap", "nodes": {"n1": "/n1/zap"}}])
        global_config = {"tools": [{"name": "zap", "home": "/global/zap"}, {"name": "old", "home": "/old"}]}

        tools = {t.name: t for t in load(raw, global_config=global_config).tools}

        assert tools["zap"].home == "/job/zap"
        assert tools["zap"].home_for("n1") == "/n1/zap"
        assert tools["old"].home == "/old"


class TestEnvironment:
    def test_env_file_sits_below_process_env(self, workspace: Path):
        (workspace / ".env").write_text('A="from-file"\nB=file\n# comment\n')

        env = build_environment(workspace, {"C": "var"}, base={"B": "process"})

        assert env["A"] == "from-file"
        assert env["B"] == "process"
        assert env["C"] == "var"
        assert env["WORKSPACE"] == str(workspace)

    def test_load_env_file_missing(self, temp_dir: Path):
        assert load_env_file(temp_dir / ".env") == {}

    def test_parse_build_vars(self):
        assert parse_build_vars(["A=1", "B=x=y"]) == {"A": "1", "B": "x=y"}
        with pytest.raises(ValueError):
            parse_build_vars(["broken"])

    def test_load_scan_config_from_file(self, workspace: Path):
        job_file = workspace / "zapgate.yml"
        job_file.write_text(
            "scanner:\n  host: ${ZAP_HOST}\n  port: 8090\n"
            "session:\n  filename: run\n"
            "context:\n  include: |\n    https://example.com/.*\n"
            "target_url: https://example.com\n"
        )

        config, env = load_scan_config(job_file, workspace, {"ZAP_HOST": "127.0.0.1"}, global_config={})

        assert config.scanner.host == "127.0.0.1"
        assert env["ZAP_HOST"] == "127.0.0.1"
