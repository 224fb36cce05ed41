"""Context and alert-filter endpoints."""

from .responses import element_value


class ClientContextMixin:
    """Wrappers around ``context`` and ``alertFilter``."""

    async def new_context(self, name: str) -> str:
        response = await self.call("context", "action", "newContext", {"contextName": name})
        return element_value(response)

    async def include_in_context(self, name: str, regex: str):
        return await self.call("context", "action", "includeInContext", {"contextName": name, "regex": regex})

    async def exclude_from_context(self, name: str, regex: str):
        return await self.call(
            "context", "action", "excludeFromContext", {"contextName": name, "regex": regex}
        )

    async def add_alert_filter(
        self,
        context_id: str,
        rule_id: str,
        new_level: str,
        url: str = "",
        url_is_regex: bool = False,
        parameter: str = "",
        enabled: bool = True,
    ):
        return await self.call(
            "alertFilter",
            "action",
            "addAlertFilter",
            {
                "contextId": context_id,
                "ruleId": rule_id,
                "newLevel": new_level,
                "url": url,
                "urlIsRegex": url_is_regex,
                "parameter": parameter,
                "enabled": enabled,
            },
        )
