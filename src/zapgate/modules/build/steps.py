"""The three CI build steps: pre-build launch, scan, and threshold check."""

import asyncio
import logging
import signal
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

from zapgate.config.loader import load_scan_config
from zapgate.config.models import ScanConfig, ScannerSettings, SessionMode
from zapgate.errors import ClientApiError, ConfigurationError, HandoffMissingError, ReadinessError, ScanAborted
from zapgate.modules.launcher.executor import LocalExecutor, RemoteExecutor
from zapgate.modules.launcher.launcher import ProcessLauncher
from zapgate.modules.launcher.process import ScannerProcess
from zapgate.modules.scan.cancel import CancelToken
from zapgate.modules.scan.driver import ScanDriver
from zapgate.modules.threshold.engine import Verdict, count_alerts_by_severity, evaluate, scaled_counts
from zapgate.modules.zapapi.client import ZapClient
from zapgate.utils.buildlog import BuildLog

from .handoff import HANDOFF_RECORD, LAUNCH_RECORD, HandoffStore
from .models import BuildResult, BuildStep, HandoffRecord

logger = logging.getLogger(__name__)

DAEMON_LOG = Path("logs") / "zap-daemon.log"

# CI variables that identify one build; the first one set wins.
BUILD_IDENTITY_VARS = ("BUILD_TAG", "BUILD_ID", "BUILD_NUMBER")

_VERDICT_RESULTS = {
    Verdict.PASS: BuildResult.SUCCESS,
    Verdict.UNSTABLE: BuildResult.UNSTABLE,
    Verdict.FAIL: BuildResult.FAILURE,
}


def build_identity(env: Mapping[str, str]) -> str:
    return next((env[name] for name in BUILD_IDENTITY_VARS if env.get(name)), "")


@dataclass
class BuildContext:
    """Collaborators shared by every build step."""

    workspace: Path
    log: BuildLog
    executor: RemoteExecutor = field(default_factory=LocalExecutor)
    build_vars: Mapping[str, str] = field(default_factory=dict)
    cancel: CancelToken = field(default_factory=CancelToken)
    client_factory: Callable[[str, int], ZapClient] = ZapClient
    build_id: str = ""

    @property
    def store(self) -> HandoffStore:
        return HandoffStore(self.workspace, self.executor)

    def launcher(self) -> ProcessLauncher:
        return ProcessLauncher(self.executor, self.log, self.build_vars)


@contextmanager
def signal_handlers(cancel: CancelToken) -> Iterator[None]:
    """Trip ``cancel`` on SIGINT/SIGTERM for the duration of a step."""
    loop = asyncio.get_running_loop()
    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, cancel.cancel, f"received {sig.name}")
        except (NotImplementedError, RuntimeError, ValueError):
            # Not on the main thread, or not supported by this platform's loop.
            logger.debug("cannot install handler for %s", sig.name)
            continue
        installed.append(sig)
    try:
        yield
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


def _record(scanner: ScannerSettings, install_dir: str, build_id: str, **extra) -> HandoffRecord:
    return HandoffRecord(
        install_dir=install_dir,
        host=scanner.host,
        port=scanner.port,
        timeout=scanner.timeout,
        settings_dir=scanner.settings_dir,
        auto_install=scanner.install.auto_install,
        tool_name=scanner.install.tool_name,
        command_line=tuple((arg.option, arg.value) for arg in scanner.command_line),
        java_home=scanner.java_home,
        build_id=build_id,
        **extra,
    )


async def _gate(
    ctx: BuildContext, launcher: ProcessLauncher, process: ScannerProcess, host: str, port: int, timeout: float
) -> None:
    try:
        await ctx.cancel.race(launcher.wait_ready(host, port, timeout))
    except (ReadinessError, ScanAborted):
        await process.terminate()
        raise


async def _join(ctx: BuildContext, process: ScannerProcess, timeout: float) -> bool:
    """Wait for the scanner to exit. False when the build was aborted first and the scanner terminated."""
    ctx.log.step("WAIT FOR ZAP TO EXIT [ {} seconds ]", timeout)
    try:
        await ctx.cancel.race(process.join(timeout))
    except ScanAborted as exc:
        ctx.log.error("BUILD ABORTED WHILE WAITING FOR ZAP TO EXIT: {}", exc)
        await process.terminate()
        return False
    return True


async def run_prebuild_step(config: ScanConfig, ctx: BuildContext) -> BuildResult:
    """Launch the scanner detached so traffic can flow through it before the scan step."""
    if config.session.mode is SessionMode.LOAD:
        ctx.log.error("LOADED SESSION FILES CANNOT BE USED IN PRE-BUILD")
        return BuildResult.FAILURE

    scanner = config.scanner
    launcher = ctx.launcher()
    plan = launcher.plan(scanner, config.tools)
    process = await launcher.launch(plan, detach_log=ctx.workspace / DAEMON_LOG)
    await _gate(ctx, launcher, process, scanner.host, scanner.port, scanner.timeout)

    record = _record(scanner, plan.install_dir, ctx.build_id, build_success=True, pid=process.pid)
    path = ctx.store.write_launch(record)
    ctx.log.step("ZAP LEFT RUNNING (pid {}) [ {} ]", process.pid, path)
    return BuildResult.SUCCESS


async def run_scan_step(config: ScanConfig, ctx: BuildContext) -> BuildResult:
    scanner = config.scanner
    launcher = ctx.launcher()
    # The threshold step must only ever see this build's outcome.
    ctx.store.discard(HANDOFF_RECORD)

    if scanner.start_first:
        try:
            launch = ctx.store.consume_launch(ctx.build_id)
        except HandoffMissingError as exc:
            ctx.log.error("ZAP WAS NOT STARTED BY A PRE-BUILD STEP")
            ctx.log.detail("{}", exc)
            return BuildResult.FAILURE
        ctx.log.step("ATTACH TO PRE-STARTED ZAP (pid {})", launch.pid)
        process = await ctx.executor.attach(launch.pid)
        install_dir = launch.install_dir
    else:
        ctx.store.discard(LAUNCH_RECORD)
        plan = launcher.plan(scanner, config.tools)
        process = await launcher.launch(plan)
        install_dir = plan.install_dir
    await _gate(ctx, launcher, process, scanner.host, scanner.port, scanner.timeout)

    try:
        async with ctx.client_factory(scanner.host, scanner.port) as client:
            driver = ScanDriver(config, client, ctx.executor, ctx.workspace, ctx.log, cancel=ctx.cancel)
            outcome = await driver.run()
    finally:
        exited = await _join(ctx, process, scanner.join_timeout)

    aborted = outcome.aborted or not exited
    ctx.store.write_handoff(
        _record(
            scanner,
            install_dir,
            ctx.build_id,
            build_success=outcome.success and not aborted,
            session_path=outcome.session_path,
        )
    )
    if aborted:
        return BuildResult.ABORTED
    return BuildResult.SUCCESS if outcome.success else BuildResult.FAILURE


async def _threshold_verdict(config: ScanConfig, client: ZapClient, record: HandoffRecord, log: BuildLog) -> Verdict:
    log.step("LOAD SESSION [ {} ]", record.session_path)
    await client.load_session(record.session_path)
    alerts = await client.alerts()
    counts = count_alerts_by_severity(alerts)
    scaled = scaled_counts(config.thresholds, counts)
    log.step("ALERT COUNTS")
    for severity, count in counts.items():
        log.detail("{} [ {} ] SCALED [ {:g} ]", severity.value.upper(), count, scaled[severity])
    verdict = evaluate(config.thresholds, counts)
    log.step("THRESHOLD VERDICT [ {} ]", verdict.value.upper())
    return verdict


async def run_threshold_step(config: ScanConfig, ctx: BuildContext) -> BuildResult:
    try:
        record = ctx.store.consume_handoff(ctx.build_id)
    except HandoffMissingError as exc:
        ctx.log.error("THERE IS NO BUILD STEP")
        ctx.log.detail("{}", exc)
        return BuildResult.FAILURE
    if not record.build_success:
        ctx.log.error("THE BUILD STEP FAILED, THRESHOLDS NOT EVALUATED")
        return BuildResult.FAILURE
    if not config.thresholds.enabled:
        ctx.log.step("THRESHOLDS DISABLED")
        return BuildResult.SUCCESS

    launcher = ctx.launcher()
    plan = launcher.plan_for(
        record.install_dir,
        record.host,
        record.port,
        settings_dir=record.settings_dir,
        extras=record.extras(),
        java_home=record.java_home,
    )
    process = await launcher.launch(plan)
    await _gate(ctx, launcher, process, record.host, record.port, record.timeout)

    verdict = None
    try:
        async with ctx.client_factory(record.host, record.port) as client:
            try:
                verdict = await _threshold_verdict(config, client, record, ctx.log)
            except ClientApiError as exc:
                ctx.log.error("THRESHOLD EVALUATION FAILED: {}", exc)
            finally:
                ctx.log.step("SHUTDOWN [ START ]")
                try:
                    await client.shutdown()
                except ClientApiError as exc:
                    ctx.log.error("SHUTDOWN FAILED: {}", exc)
                    verdict = Verdict.FAIL
    finally:
        exited = await _join(ctx, process, config.scanner.join_timeout)

    if ctx.cancel.cancelled or not exited:
        return BuildResult.ABORTED
    return _VERDICT_RESULTS[verdict] if verdict is not None else BuildResult.FAILURE


STEPS = {
    BuildStep.START: run_prebuild_step,
    BuildStep.SCAN: run_scan_step,
    BuildStep.THRESHOLD: run_threshold_step,
}


async def execute_step(
    step: BuildStep,
    job_path: Path,
    workspace: Path,
    log: BuildLog,
    build_vars: Mapping[str, str] | None = None,
    executor: RemoteExecutor | None = None,
    client_factory: Callable[[str, int], ZapClient] = ZapClient,
) -> BuildResult:
    """Load the job, run one step, and map any escaping error to a result level."""
    ctx = BuildContext(
        workspace=workspace,
        log=log,
        executor=executor or LocalExecutor(),
        build_vars=dict(build_vars or {}),
        client_factory=client_factory,
    )
    with signal_handlers(ctx.cancel):
        try:
            config, env = load_scan_config(job_path, workspace, ctx.build_vars, log)
            ctx.build_id = build_identity(env)
            return await STEPS[step](config, ctx)
        except ConfigurationError as exc:
            log.error("{}", exc)
            return BuildResult.FAILURE
        except ScanAborted:
            log.error("BUILD ABORTED")
            return BuildResult.ABORTED
        except Exception as exc:
            log.exception(exc)
            return BuildResult.FAILURE
