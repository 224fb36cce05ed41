"""Authentication, users and forced-user endpoints."""

from .responses import element_value


class ClientAuthMixin:
    async def set_authentication_method(self, context_id: str, method_name: str, config_params: str):
        return await self.call(
            "authentication",
            "action",
            "setAuthenticationMethod",
            {"contextId": context_id, "authMethodName": method_name, "authMethodConfigParams": config_params},
        )

    async def get_authentication_method(self, context_id: str):
        return await self.call("authentication", "view", "getAuthenticationMethod", {"contextId": context_id})

    async def set_logged_in_indicator(self, context_id: str, regex: str):
        return await self.call(
            "authentication",
            "action",
            "setLoggedInIndicator",
            {"contextId": context_id, "loggedInIndicatorRegex": regex},
        )

    async def set_logged_out_indicator(self, context_id: str, regex: str):
        return await self.call(
            "authentication",
            "action",
            "setLoggedOutIndicator",
            {"contextId": context_id, "loggedOutIndicatorRegex": regex},
        )

    async def new_user(self, context_id: str, name: str) -> str:
        response = await self.call("users", "action", "newUser", {"contextId": context_id, "name": name})
        return element_value(response)

    async def set_authentication_credentials(self, context_id: str, user_id: str, config_params: str):
        return await self.call(
            "users",
            "action",
            "setAuthenticationCredentials",
            {"contextId": context_id, "userId": user_id, "authCredentialsConfigParams": config_params},
        )

    async def set_user_enabled(self, context_id: str, user_id: str, enabled: bool = True):
        return await self.call(
            "users", "action", "setUserEnabled", {"contextId": context_id, "userId": user_id, "enabled": enabled}
        )

    async def set_forced_user(self, context_id: str, user_id: str):
        return await self.call("forcedUser", "action", "setForcedUser", {"contextId": context_id, "userId": user_id})

    async def set_forced_user_mode_enabled(self, enabled: bool = True):
        return await self.call("forcedUser", "action", "setForcedUserModeEnabled", {"boolean": enabled})
