"""Test configuration and fixtures for zapgate."""

import asyncio
import io
import tempfile
from collections.abc import Generator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console

from zapgate.errors import ReadinessError
from zapgate.modules.launcher.executor import LocalExecutor
from zapgate.modules.zapapi.client import API_KEY, ZapClient
from zapgate.modules.zapapi.responses import decode_response
from zapgate.utils.buildlog import BuildLog


class Seq:
    """Successive replies for one endpoint; the last one repeats."""

    def __init__(self, *replies: Any):
        self.replies = list(replies)

    def next(self) -> Any:
        if len(self.replies) > 1:
            return self.replies.pop(0)
        return self.replies[0]


@dataclass
class ApiCall:
    component: str
    category: str
    method: str
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return f"{self.component}/{self.method}"


DEFAULT_REPLIES: dict[str, Any] = {
    "context/newContext": {"contextId": "1"},
    "users/newUser": {"userId": "7"},
    "spider/scan": {"scan": "0"},
    "spider/scanAsUser": {"scan": "0"},
    "spider/status": {"status": "100"},
    "ajaxSpider/status": {"status": "stopped"},
    "ascan/scan": {"scan": "3"},
    "ascan/scanAsUser": {"scan": "3"},
    "ascan/status": {"status": "100"},
    "core/numberOfAlerts": {"numberOfAlerts": "0"},
    "core/numberOfMessages": {"numberOfMessages": "0"},
    "core/sites": {"sites": []},
    "core/alerts": {"alerts": []},
    "authentication/getAuthenticationMethod": {"method": {"methodName": "formBasedAuthentication"}},
    "exportreport/formats": {"formats": ["xml", "html", "pdf"]},
    "exportreport/generate": {"Result": "OK"},
}


class RecordingClient(ZapClient):
    """ZapClient whose transport is a scripted reply table; every call is recorded."""

    def __init__(self, replies: dict[str, Any] | None = None):
        self.base_url = "http://127.0.0.1:8090"
        self.api_key = API_KEY
        self.replies = {**DEFAULT_REPLIES, **(replies or {})}
        self.calls: list[ApiCall] = []

    async def aclose(self) -> None:
        pass

    def _reply(self, key: str, default: Any) -> Any:
        reply = self.replies.get(key, default)
        if isinstance(reply, Seq):
            reply = reply.next()
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def call(self, component, category, method, params=None):
        call = ApiCall(component, category, method, dict(params or {}))
        self.calls.append(call)
        return decode_response(self._reply(call.key, {"Result": "OK"}))

    async def other(self, component, method, params=None):
        call = ApiCall(component, "other", method, dict(params or {}))
        self.calls.append(call)
        return self._reply(call.key, f"<{method}/>".encode())

    def keys(self) -> list[str]:
        return [call.key for call in self.calls]

    def named(self, key: str) -> list[ApiCall]:
        return [call for call in self.calls if call.key == key]


class FakeProcess:
    def __init__(self, pid: int, hang: bool = False):
        self.pid = pid
        self.hang = hang
        self.joined: list[float] = []
        self.terminated = False

    async def join(self, timeout: float = 3600.0):
        self.joined.append(timeout)
        if self.hang:
            await asyncio.Event().wait()
        return 0

    async def terminate(self) -> None:
        self.terminated = True


class FakeExecutor(LocalExecutor):
    """Real filesystem, scripted processes and ports."""

    def __init__(
        self, env: dict[str, str] | None = None, os_family: str = "unix", ready: bool = True, hang: bool = False
    ):
        super().__init__(node_name="node-1")
        self.os_family = os_family
        self.env = env if env is not None else {"ZAPROXY_HOME": "/opt/zap", "PATH": "/usr/bin"}
        self.ready = ready
        self.hang = hang
        self.spawned: list[dict[str, Any]] = []
        self.processes: list[FakeProcess] = []
        self.port_checks: list[tuple[str, int, float]] = []

    def environment(self) -> dict[str, str]:
        return dict(self.env)

    async def spawn(self, command, cwd, env, log=None, detach_log=None):
        self.spawned.append({"command": list(command), "cwd": cwd, "env": dict(env), "detach_log": detach_log})
        process = FakeProcess(pid=4242 + len(self.processes), hang=self.hang)
        self.processes.append(process)
        return process

    async def wait_for_port(self, host, port, timeout):
        self.port_checks.append((host, port, timeout))
        if not self.ready:
            raise ReadinessError(f"Unable to connect to ZAP's proxy after {timeout} seconds")
        return 0.0

    async def attach(self, pid):
        process = FakeProcess(pid)
        self.processes.append(process)
        return process


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def workspace(temp_dir: Path) -> Path:
    path = temp_dir / "workspace"
    path.mkdir()
    return path


@pytest.fixture
def buildlog() -> BuildLog:
    return BuildLog(Console(file=io.StringIO(), width=200))


@pytest.fixture
def client() -> RecordingClient:
    return RecordingClient()


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()
