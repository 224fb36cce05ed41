"""Create the scan context, scope it, and set up authentication."""

import logging
from dataclasses import dataclass

from zapgate.config.models import AuthBlock, ContextSettings
from zapgate.errors import ClientApiError
from zapgate.modules.launcher.executor import RemoteExecutor
from zapgate.modules.zapapi.client import ZapClient
from zapgate.modules.zapapi.responses import to_python
from zapgate.utils.buildlog import BuildLog

from .alert_filters import parse_alert_filters, resolve_filter_path
from .auth import auth_method_params, credential_params

logger = logging.getLogger(__name__)


@dataclass
class ContextResult:
    context_id: str
    user_id: str = ""
    success: bool = True


class ContextConfigurator:
    """
    Runs the fixed configuration order: context, scope, alert filters, auth.

    Context creation and auth failures propagate. A failing include/exclude
    line is logged, marks the result unsuccessful, and the rest still run.
    """

    def __init__(self, client: ZapClient, executor: RemoteExecutor, log: BuildLog):
        self.client = client
        self.executor = executor
        self.log = log

    async def configure(self, context: ContextSettings, auth: AuthBlock | None, settings_dir: str) -> ContextResult:
        self.log.step("CREATE NEW CONTEXT [ {} ]", context.name)
        context_id = await self.client.new_context(context.name)
        self.log.detail("CONTEXT ID [ {} ]", context_id)
        result = ContextResult(context_id=context_id)

        if not await self._scope(context):
            result.success = False
        await self._alert_filters(context.alert_filters, settings_dir, context_id)

        if auth is not None:
            result.user_id = await self.setup_auth(context_id, auth)
        return result

    async def _scope(self, context: ContextSettings) -> bool:
        ok = True
        self.log.step("INCLUDE IN CONTEXT")
        for pattern in context.include_patterns():
            try:
                await self.client.include_in_context(context.name, pattern)
                self.log.detail("[ {} ]", pattern)
            except ClientApiError as exc:
                ok = False
                self.log.error("INCLUDE IN CONTEXT FAILED [ {} ]: {}", pattern, exc)

        patterns = context.exclude_patterns()
        if patterns:
            self.log.step("EXCLUDE FROM CONTEXT")
        for pattern in patterns:
            try:
                await self.client.exclude_from_context(context.name, pattern)
                self.log.detail("[ {} ]", pattern)
            except ClientApiError as exc:
                ok = False
                self.log.error("EXCLUDE FROM CONTEXT FAILED [ {} ]: {}", pattern, exc)
        return ok

    async def _alert_filters(self, reference: str, settings_dir: str, context_id: str) -> None:
        if not reference:
            self.log.step("ALERT FILTERS: [ None ]")
            return
        path = resolve_filter_path(reference, settings_dir, self.executor.exists)
        self.log.step("ALERT FILTERS: [ {} ]", path)
        rules = parse_alert_filters(self.executor.read_text(path))
        for index, rule in enumerate(rules, start=1):
            await self.client.add_alert_filter(
                context_id,
                rule.rule_id,
                rule.new_level,
                url=rule.url,
                url_is_regex=rule.url_is_regex,
                parameter=rule.parameter,
                enabled=rule.enabled,
            )
            self.log.detail(
                "({}) RULE ID [ {} ] NEW LEVEL [ {} ] URL [ {} ]", index, rule.rule_id, rule.new_level, rule.url
            )

    async def setup_auth(self, context_id: str, auth: AuthBlock) -> str:
        """Configure the auth method and a forced user; returns the user id."""
        self.log.step("SET UP AUTHENTICATION [ {} ]", auth.method_name)
        await self.client.set_authentication_method(context_id, auth.method_name, auth_method_params(auth))
        method_info = await self.client.get_authentication_method(context_id)
        self.log.detail("AUTHENTICATION CONFIG [ {} ]", to_python(method_info))

        if auth.logged_in_indicator:
            await self.client.set_logged_in_indicator(context_id, auth.logged_in_indicator)
            self.log.detail("LOGGED IN INDICATOR [ {} ]", auth.logged_in_indicator)
        if auth.logged_out_indicator:
            await self.client.set_logged_out_indicator(context_id, auth.logged_out_indicator)
            self.log.detail("LOGGED OUT INDICATOR [ {} ]", auth.logged_out_indicator)

        user_id = await self.client.new_user(context_id, auth.username)
        self.log.detail("USER [ {} ] ID [ {} ]", auth.username, user_id)
        await self.client.set_authentication_credentials(context_id, user_id, credential_params(auth))
        await self.client.set_user_enabled(context_id, user_id, True)
        await self.client.set_forced_user(context_id, user_id)
        await self.client.set_forced_user_mode_enabled(True)
        logger.debug("forced user %s enabled for context %s", user_id, context_id)
        self.log.detail("FORCED USER MODE ENABLED")
        return user_id
