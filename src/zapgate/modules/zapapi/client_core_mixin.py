"""Core endpoints: sessions, sites, alerts, reports and shutdown."""

from typing import Any

from .responses import element_value, list_items, to_python


class ClientCoreMixin:
    """Wrappers around the ``core`` component."""

    async def load_session(self, path: str):
        return await self.call("core", "action", "loadSession", {"name": path})

    async def save_session(self, path: str, overwrite: bool = True):
        return await self.call("core", "action", "saveSession", {"name": path, "overwrite": overwrite})

    async def sites(self) -> list[str]:
        response = await self.call("core", "view", "sites")
        return [element_value(item) for item in list_items(response)]

    async def delete_site_node(self, url: str, method: str = "", post_data: str = ""):
        return await self.call(
            "core", "action", "deleteSiteNode", {"url": url, "method": method, "postData": post_data}
        )

    async def number_of_alerts(self, baseurl: str = "") -> int:
        response = await self.call("core", "view", "numberOfAlerts", {"baseurl": baseurl})
        return int(element_value(response) or 0)

    async def number_of_messages(self, baseurl: str = "") -> int:
        response = await self.call("core", "view", "numberOfMessages", {"baseurl": baseurl})
        return int(element_value(response) or 0)

    async def alerts(self, baseurl: str = "", start: int = 0, count: int = 0) -> list[dict[str, Any]]:
        """Return raw alert records; ``count=0`` means all."""
        params: dict[str, Any] = {"baseurl": baseurl}
        if start:
            params["start"] = start
        if count:
            params["count"] = count
        response = await self.call("core", "view", "alerts", params)
        return [item for item in to_python(response) if isinstance(item, dict)]

    async def core_report(self, fmt: str) -> bytes:
        """Render a built-in report (``xml``, ``html``, ``json`` or ``md``)."""
        return await self.other("core", f"{fmt}report")

    async def shutdown(self):
        return await self.call("core", "action", "shutdown")
