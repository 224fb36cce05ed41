"""Handles on a running scanner process."""

import asyncio
import logging
import os
import signal
import subprocess
import time
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_JOIN_TIMEOUT = 3600.0
TERMINATE_GRACE = 3.0


class ScannerProcess(Protocol):
    """What the build steps need from a launched scanner."""

    pid: int

    async def join(self, timeout: float = DEFAULT_JOIN_TIMEOUT) -> int | None: ...

    async def terminate(self) -> None: ...


class AttachedProcess:
    """Child started in this event loop; its output is pumped into the build log."""

    def __init__(self, process: asyncio.subprocess.Process, log: Callable[[str], None] | None = None):
        self._process = process
        self.pid = process.pid
        self._pump = asyncio.create_task(self._pump_output(log)) if process.stdout else None

    async def _pump_output(self, log: Callable[[str], None] | None) -> None:
        assert self._process.stdout is not None
        while True:
            line = await self._process.stdout.readline()
            if not line:
                break
            if log is not None:
                log(line.decode(errors="replace"))

    @property
    def returncode(self) -> int | None:
        return self._process.returncode

    async def terminate(self) -> None:
        if self._process.returncode is not None:
            return
        self._process.terminate()
        try:
            await asyncio.wait_for(self._process.wait(), timeout=TERMINATE_GRACE)
        except TimeoutError:
            self._process.kill()
            await self._process.wait()

    async def join(self, timeout: float = DEFAULT_JOIN_TIMEOUT) -> int | None:
        """Wait for exit; terminate then kill once the bound elapses."""
        try:
            await asyncio.wait_for(self._process.wait(), timeout=timeout)
        except TimeoutError:
            logger.warning("scanner pid %s still running after %ss, terminating", self.pid, timeout)
            await self.terminate()
        if self._pump is not None:
            await self._pump
        return self._process.returncode


def pid_alive(pid: int) -> bool:
    """Check whether ``pid`` still names a live process on this host."""
    if os.name == "nt":
        result = subprocess.run(
            ["tasklist", "/FI", f"PID eq {pid}", "/NH"],
            capture_output=True,
            text=True,
            check=False,
        )
        return str(pid) in result.stdout
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


class DetachedProcess:
    """
    Scanner identified only by pid.

    Used for the detached pre-build launch (the scanner must outlive this
    command) and for re-attaching to it from a later build step.
    """

    def __init__(
        self,
        pid: int,
        popen: subprocess.Popen | None = None,
        poll_interval: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.pid = pid
        self._popen = popen
        self._poll_interval = poll_interval
        self._clock = clock

    def is_running(self) -> bool:
        if self._popen is not None:
            return self._popen.poll() is None
        return pid_alive(self.pid)

    def _signal(self, sig: int) -> None:
        try:
            os.kill(self.pid, sig)
        except ProcessLookupError:
            pass

    async def _wait(self, timeout: float) -> bool:
        deadline = self._clock() + timeout
        while self.is_running():
            if self._clock() >= deadline:
                return False
            await asyncio.sleep(self._poll_interval)
        return True

    async def terminate(self) -> None:
        if not self.is_running():
            return
        self._signal(signal.SIGTERM)
        if not await self._wait(TERMINATE_GRACE):
            self._signal(getattr(signal, "SIGKILL", signal.SIGTERM))
            await self._wait(TERMINATE_GRACE)

    async def join(self, timeout: float = DEFAULT_JOIN_TIMEOUT) -> int | None:
        if not await self._wait(timeout):
            logger.warning("scanner pid %s still running after %ss, terminating", self.pid, timeout)
            await self.terminate()
        return self._popen.returncode if self._popen is not None else None
