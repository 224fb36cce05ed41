"""Spider, AJAX spider and active-scan endpoints."""

from .responses import ApiResponse, ApiResponseElement, element_value


def _scan_id(response: ApiResponse) -> str:
    # Start actions answer {"scan": "<id>"}; anything else means no id.
    if isinstance(response, ApiResponseElement):
        return response.value
    return ""


class ClientScanMixin:
    """Wrappers around ``spider``, ``ajaxSpider`` and ``ascan``."""

    async def spider_scan(
        self,
        url: str,
        max_children: int = 0,
        recurse: bool = True,
        context_name: str = "",
        subtree_only: bool = False,
    ) -> str:
        response = await self.call(
            "spider",
            "action",
            "scan",
            {
                "url": url,
                "maxChildren": max_children or "",
                "recurse": recurse,
                "contextName": context_name,
                "subtreeOnly": subtree_only,
            },
        )
        return _scan_id(response)

    async def spider_scan_as_user(
        self,
        context_id: str,
        user_id: str,
        url: str,
        max_children: int = 0,
        recurse: bool = True,
        subtree_only: bool = False,
    ) -> str:
        response = await self.call(
            "spider",
            "action",
            "scanAsUser",
            {
                "contextId": context_id,
                "userId": user_id,
                "url": url,
                "maxChildren": max_children or "",
                "recurse": recurse,
                "subtreeOnly": subtree_only,
            },
        )
        return _scan_id(response)

    async def spider_status(self, scan_id: str = "") -> int:
        response = await self.call("spider", "view", "status", {"scanId": scan_id})
        return int(element_value(response))

    async def ajax_spider_scan(
        self, url: str, in_scope: bool = True, context_name: str = "", subtree_only: bool = False
    ):
        return await self.call(
            "ajaxSpider",
            "action",
            "scan",
            {"url": url, "inScope": in_scope, "contextName": context_name, "subtreeOnly": subtree_only},
        )

    async def ajax_spider_status(self) -> str:
        response = await self.call("ajaxSpider", "view", "status")
        return element_value(response)

    async def ascan_scan(
        self,
        url: str,
        recurse: bool = True,
        in_scope_only: bool = False,
        policy: str = "",
        method: str = "",
        post_data: str = "",
    ) -> str:
        response = await self.call(
            "ascan",
            "action",
            "scan",
            {
                "url": url,
                "recurse": recurse,
                "inScopeOnly": in_scope_only,
                "scanPolicyName": policy,
                "method": method,
                "postData": post_data,
            },
        )
        return _scan_id(response)

    async def ascan_scan_as_user(
        self,
        url: str,
        context_id: str,
        user_id: str,
        recurse: bool = True,
        policy: str = "",
        method: str = "",
        post_data: str = "",
    ) -> str:
        response = await self.call(
            "ascan",
            "action",
            "scanAsUser",
            {
                "url": url,
                "contextId": context_id,
                "userId": user_id,
                "recurse": recurse,
                "scanPolicyName": policy,
                "method": method,
                "postData": post_data,
            },
        )
        return _scan_id(response)

    async def ascan_status(self, scan_id: str = "") -> int:
        response = await self.call("ascan", "view", "status", {"scanId": scan_id})
        return int(element_value(response))
