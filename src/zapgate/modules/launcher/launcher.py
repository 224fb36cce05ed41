"""Start the scanner daemon on an executor and wait for its control port."""

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path

from zapgate.config.models import CommandLineArg, ScannerSettings, ToolInstallation
from zapgate.utils.buildlog import BuildLog

from .command import LaunchPlan, build_command, resolve_install_dir, scanner_environment
from .executor import RemoteExecutor
from .process import ScannerProcess

logger = logging.getLogger(__name__)


class ProcessLauncher:
    """Resolves, starts and gates the scanner for one build step."""

    def __init__(self, executor: RemoteExecutor, log: BuildLog, build_vars: Mapping[str, str] | None = None):
        self.executor = executor
        self.log = log
        self.build_vars = dict(build_vars or {})

    def _environment(self, java_home: str) -> dict[str, str]:
        return scanner_environment(
            self.executor.environment(), self.build_vars, self.executor.os_family, java_home
        )

    def plan(self, scanner: ScannerSettings, tools: Sequence[ToolInstallation]) -> LaunchPlan:
        env = self._environment(scanner.java_home)
        install_dir = resolve_install_dir(scanner.install, tools, self.executor.node_name, env)
        return self.plan_for(
            install_dir,
            scanner.host,
            scanner.port,
            settings_dir=scanner.settings_dir,
            extras=scanner.command_line,
            java_home=scanner.java_home,
        )

    def plan_for(
        self,
        install_dir: str,
        host: str,
        port: int,
        settings_dir: str = "",
        extras: Sequence[CommandLineArg] = (),
        java_home: str = "",
    ) -> LaunchPlan:
        """Plan a launch from already-resolved values (e.g. a handoff record)."""
        command = build_command(install_dir, self.executor.os_family, host, port, settings_dir, extras)
        return LaunchPlan(install_dir=install_dir, command=command, env=self._environment(java_home))

    async def launch(self, plan: LaunchPlan, detach_log: Path | None = None) -> ScannerProcess:
        self.log.step("INSTALLATION DIRECTORY [ {} ]", plan.install_dir)
        self.log.step("START ZAP [ {} ]", " ".join(plan.command))
        process = await self.executor.spawn(
            plan.command,
            cwd=plan.cwd,
            env=plan.env,
            log=self.log.raw,
            detach_log=detach_log,
        )
        logger.debug("scanner started with pid %s on %s", process.pid, self.executor.node_name)
        if detach_log is not None:
            self.log.detail("ZAP OUTPUT REDIRECTED TO [ {} ]", detach_log)
        return process

    async def wait_ready(self, host: str, port: int, timeout: float) -> None:
        self.log.step("WAIT FOR ZAP INITIALIZATION [ {} seconds ]", timeout)
        elapsed = await self.executor.wait_for_port(host, port, timeout)
        self.log.step("ZAP INITIALIZED ( {:.0f} seconds )", elapsed)
