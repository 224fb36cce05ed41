"""Readiness gate: block until the scanner's control port accepts connections."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from zapgate.errors import ReadinessError

logger = logging.getLogger(__name__)

POLL_INTERVAL = 1.0

ConnectFn = Callable[[str, int, float], Awaitable[None]]


async def tcp_connect(host: str, port: int, remaining: float) -> None:
    """Open and immediately close one TCP connection within ``remaining`` seconds."""
    _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=remaining)
    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        logger.debug("close after readiness check failed", exc_info=True)


async def wait_for_port(
    host: str,
    port: int,
    timeout: float,
    interval: float = POLL_INTERVAL,
    *,
    connect: ConnectFn = tcp_connect,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> float:
    """
    Retry a raw connect until it succeeds or ``timeout`` seconds have passed.

    Each attempt gets whatever time is left. A refused or otherwise failed
    connect sleeps ``interval`` and retries; an attempt that itself times out
    is fatal. Returns the elapsed seconds on success.
    """
    started = clock()
    elapsed = 0.0
    attempts = 0
    while True:
        remaining = timeout - elapsed
        attempts += 1
        try:
            await connect(host, port, max(remaining, 0.001))
            logger.debug("port %s:%s reachable after %d attempt(s)", host, port, attempts)
            return elapsed
        except TimeoutError as exc:
            raise ReadinessError(
                f"Unable to connect to ZAP's proxy after {timeout} seconds: connect to {host}:{port} timed out"
            ) from exc
        except OSError as exc:
            logger.debug("port %s:%s not ready: %s", host, port, exc)
            await sleep(interval)
            elapsed = clock() - started
            if elapsed >= timeout:
                raise ReadinessError(
                    f"Unable to connect to ZAP's proxy after {timeout} seconds ({host}:{port})"
                ) from exc
