"""Tests for scanner install lookup, command line and process handling."""

import os
import sys
from pathlib import Path

import pytest

from zapgate.config.models import CommandLineArg, InstallSpec, ScannerSettings, ToolInstallation
from zapgate.errors import ConfigurationError
from zapgate.modules.launcher import (
    LocalExecutor,
    ProcessLauncher,
    build_command,
    resolve_install_dir,
    scanner_environment,
)


class TestBuildCommand:
    def test_unix_command_line(self):
        command = build_command("/opt/zap/", "unix", "127.0.0.1", 8090)

        assert command == [
            "/opt/zap/zap.sh",
            "-daemon",
            "-host",
            "127.0.0.1",
            "-port",
            "8090",
            "-config",
            "api.key=ZAPROXY-PLUGIN",
        ]

    def test_windows_executable_and_settings_dir(self):
        command = build_command("C:\\ZAP", "windows", "localhost", 8080, settings_dir="C:\\zapdir")

        assert command[0] == "C:\\ZAP\\zap.bat"
        assert command[-2:] == ["-dir", "C:\\zapdir"]

    def test_extra_args_drop_empty_halves(self):
        extras = (
            CommandLineArg("-config", "spider.maxDuration=5"),
            CommandLineArg("-silent", ""),
            CommandLineArg("", ""),
        )

        command = build_command("/opt/zap", "unix", "h", 1, extras=extras)

        assert command[8:] == ["-config", "spider.maxDuration=5", "-silent"]


class TestResolveInstallDir:
    def test_reads_environment_variable(self):
        home = resolve_install_dir(InstallSpec(), (), "node-1", {"ZAPROXY_HOME": "/opt/zap"})

        assert home == "/opt/zap"

    def test_missing_directory_is_configuration_error(self):
        with pytest.raises(ConfigurationError) as exc_info:
            resolve_install_dir(InstallSpec(), (), "node-1", {})

        assert "ZAP INSTALLATION DIRECTORY IS MISSING" in str(exc_info.value)

    def test_auto_install_uses_node_override_and_expands(self):
        tool = ToolInstallation("zap-2.14", "/opt/zap", nodes=(("node-1", "${TOOLS}/zap"),))

        home = resolve_install_dir(
            InstallSpec(auto_install=True, tool_name="zap-2.14"), (tool,), "node-1", {"TOOLS": "/srv/tools"}
        )

        assert home == "/srv/tools/zap"

    def test_auto_install_unknown_tool(self):
        with pytest.raises(ConfigurationError):
            resolve_install_dir(InstallSpec(auto_install=True, tool_name="nope"), (), "node-1", {})


class TestScannerEnvironment:
    def test_build_vars_override_and_java_home(self):
        env = scanner_environment(
            {"PATH": "/usr/bin", "MODE": "a"}, {"MODE": "b"}, "unix", java_home="/jdk"
        )

        assert env["MODE"] == "b"
        assert env["JAVA_HOME"] == "/jdk"
        assert env["PATH"] == "/jdk/bin:/usr/bin"

    def test_windows_merge_is_case_insensitive(self):
        env = scanner_environment({"Path": "C:\\Windows", "mode": "a"}, {"MODE": "b"}, "windows", "C:\\jdk")

        assert "mode" not in env
        assert env["MODE"] == "b"
        assert env["Path"] == "C:\\jdk\\bin;C:\\Windows"


@pytest.mark.asyncio
async def test_launcher_spawns_in_install_dir(executor, buildlog):
    launcher = ProcessLauncher(executor, buildlog, {"EXTRA": "1"})
    settings = ScannerSettings(host="127.0.0.1", port=8090, settings_dir="/home/ci/.ZAP")

    plan = launcher.plan(settings, ())
    process = await launcher.launch(plan)

    spawned = executor.spawned[0]
    assert spawned["cwd"] == "/opt/zap"
    assert spawned["command"][0] == "/opt/zap/zap.sh"
    assert spawned["env"]["EXTRA"] == "1"
    assert process.pid == 4242
    assert buildlog.contains("START ZAP")


@pytest.mark.skipif(os.name == "nt", reason="posix process semantics")
class TestLocalExecutor:
    @pytest.mark.asyncio
    async def test_attached_output_is_pumped(self, temp_dir: Path):
        lines: list[str] = []
        process = await LocalExecutor().spawn(
            [sys.executable, "-c", "print('zap ready')"], str(temp_dir), dict(os.environ), log=lines.append
        )

        code = await process.join(timeout=10)

        assert code == 0
        assert [line.strip() for line in lines] == ["zap ready"]

    @pytest.mark.asyncio
    async def test_join_terminates_after_bound(self, temp_dir: Path):
        process = await LocalExecutor().spawn(
            [sys.executable, "-c", "import time; time.sleep(30)"],
            str(temp_dir),
            dict(os.environ),
            detach_log=temp_dir / "logs" / "zap-daemon.log",
        )

        await process.join(timeout=0.2)

        assert not process.is_running()
        assert (temp_dir / "logs" / "zap-daemon.log").exists()

    def test_file_operations(self, temp_dir: Path):
        executor = LocalExecutor()
        target = temp_dir / "a" / "b.txt"

        executor.make_dirs(target.parent)
        executor.write_bytes(target, b"hello")

        assert executor.exists(target)
        assert executor.read_text(target) == "hello"
        assert executor.list_files(target.parent) == [target]
        executor.delete_file(target)
        assert not executor.exists(target)
        assert executor.list_files(temp_dir / "missing") == []
