"""Spider, AJAX spider and active scan, each started then polled to completion."""

import logging
import time
from collections.abc import Awaitable, Callable

from zapgate.config.models import (
    ActiveScanSettings,
    AjaxSpiderSettings,
    PollingSettings,
    SpiderSettings,
)
from zapgate.errors import PhaseTimeoutError
from zapgate.modules.zapapi.client import ZapClient
from zapgate.utils.buildlog import BuildLog

from .cancel import CancelToken
from .models import PhaseResult

logger = logging.getLogger(__name__)

AJAX_RUNNING = "running"


class PhaseRunner:
    """Runs the three discovery/attack phases against one target."""

    def __init__(
        self,
        client: ZapClient,
        log: BuildLog,
        polling: PollingSettings,
        cancel: CancelToken | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.log = log
        self.polling = polling
        self.cancel = cancel or CancelToken()
        self.clock = clock

    def _skip(self, name: str) -> PhaseResult:
        self.log.step("SKIP {}", name)
        return PhaseResult(name=name, skipped=True)

    async def _poll(
        self,
        result: PhaseResult,
        status: Callable[[], Awaitable[int | str]],
        running: Callable[[int | str], bool],
        with_messages: bool = False,
    ) -> PhaseResult:
        deadline = None if self.polling.timeout is None else self.clock() + self.polling.timeout
        current = await status()
        result.progress.append(current)
        while running(current):
            alerts = await self.client.number_of_alerts()
            result.alert_counts.append(alerts)
            if with_messages:
                messages = await self.client.number_of_messages()
                result.message_counts.append(messages)
                self.log.detail(
                    "{} STATUS [ {} ] ALERTS [ {} ] MESSAGES [ {} ]", result.name, current, alerts, messages
                )
            else:
                self.log.detail("{} STATUS [ {} ] ALERTS [ {} ]", result.name, current, alerts)

            if deadline is not None and self.clock() >= deadline:
                raise PhaseTimeoutError(f"{result.name} did not finish within {self.polling.timeout} seconds")
            await self.cancel.sleep(self.polling.interval)
            current = await status()
            result.progress.append(current)

        result.final_status = current
        self.log.step("{} COMPLETED [ {} ]", result.name, current)
        return result

    async def run_spider(
        self,
        settings: SpiderSettings,
        target: str,
        context_name: str,
        context_id: str = "",
        user_id: str = "",
    ) -> PhaseResult:
        name = "SPIDER"
        if not settings.enabled:
            return self._skip(name)
        self.cancel.raise_if_cancelled()
        result = PhaseResult(name=name, started=True)
        if user_id:
            self.log.step("SPIDER THE SITE [ {} ] AS USER [ {} ]", target, user_id)
            result.scan_id = await self.client.spider_scan_as_user(
                context_id,
                user_id,
                target,
                max_children=settings.max_children,
                recurse=settings.recurse,
                subtree_only=settings.subtree_only,
            )
        else:
            self.log.step("SPIDER THE SITE [ {} ]", target)
            result.scan_id = await self.client.spider_scan(
                target,
                max_children=settings.max_children,
                recurse=settings.recurse,
                context_name=context_name,
                subtree_only=settings.subtree_only,
            )
        return await self._poll(
            result,
            lambda: self.client.spider_status(result.scan_id),
            lambda progress: int(progress) < 100,
        )

    async def run_ajax_spider(self, settings: AjaxSpiderSettings, target: str, context_name: str) -> PhaseResult:
        """Browser-driven discovery; there is no as-user variant, so it always runs unauthenticated."""
        name = "AJAX SPIDER"
        if not settings.enabled:
            return self._skip(name)
        self.cancel.raise_if_cancelled()
        result = PhaseResult(name=name, started=True)
        self.log.step("AJAX SPIDER THE SITE [ {} ]", target)
        await self.client.ajax_spider_scan(target, in_scope=settings.in_scope_only, context_name=context_name)
        return await self._poll(
            result,
            self.client.ajax_spider_status,
            lambda status: str(status).lower() == AJAX_RUNNING,
        )

    async def run_active_scan(
        self,
        settings: ActiveScanSettings,
        target: str,
        context_id: str = "",
        user_id: str = "",
    ) -> PhaseResult:
        name = "ACTIVE SCAN"
        if not settings.enabled:
            return self._skip(name)
        self.cancel.raise_if_cancelled()
        result = PhaseResult(name=name, started=True)
        if settings.policy:
            self.log.detail("POLICY [ {} ]", settings.policy)
        if user_id:
            self.log.step("ACTIVE SCAN THE SITE [ {} ] AS USER [ {} ]", target, user_id)
            result.scan_id = await self.client.ascan_scan_as_user(
                target, context_id, user_id, recurse=settings.recurse, policy=settings.policy
            )
        else:
            self.log.step("ACTIVE SCAN THE SITE [ {} ]", target)
            result.scan_id = await self.client.ascan_scan(target, recurse=settings.recurse, policy=settings.policy)
        logger.debug("active scan id %r", result.scan_id)
        return await self._poll(
            result,
            lambda: self.client.ascan_status(result.scan_id),
            lambda progress: int(progress) < 100,
            with_messages=True,
        )
