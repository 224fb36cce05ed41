"""Configuration strings sent to the scanner's authentication API."""

from urllib.parse import quote_plus

from zapgate.config.models import AuthBlock, FormBasedAuth, ScriptBasedAuth


def form_auth_params(auth: FormBasedAuth) -> str:
    """``loginUrl=<enc>&loginRequestData=<enc(user={%username%}&pass={%password%}[&extra])>``."""
    request_data = f"{auth.username_parameter}={{%username%}}&{auth.password_parameter}={{%password%}}"
    if auth.extra_post_data:
        request_data += f"&{auth.extra_post_data}"
    return f"loginUrl={quote_plus(auth.login_url)}&loginRequestData={quote_plus(request_data)}"


def script_auth_params(auth: ScriptBasedAuth) -> str:
    params = f"scriptName={quote_plus(auth.script_name)}"
    for param in auth.script_params:
        params += f"&{quote_plus(param.name)}={quote_plus(param.value)}"
    return params


def auth_method_params(auth: AuthBlock) -> str:
    if isinstance(auth, FormBasedAuth):
        return form_auth_params(auth)
    return script_auth_params(auth)


def credential_params(auth: AuthBlock) -> str:
    """User credentials, keyed with the casing the auth method expects."""
    user_key, password_key = auth.credential_keys
    return f"{user_key}={quote_plus(auth.username)}&{password_key}={quote_plus(auth.password)}"
