"""Decoded shapes of the scanner's JSON API replies."""

from dataclasses import dataclass, field
from typing import Any

from zapgate.errors import ClientApiError


@dataclass(frozen=True)
class ApiResponseElement:
    name: str
    value: str


@dataclass(frozen=True)
class ApiResponseList:
    name: str
    items: list["ApiResponse"] = field(default_factory=list)


@dataclass(frozen=True)
class ApiResponseSet:
    name: str
    fields: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)


ApiResponse = ApiResponseElement | ApiResponseList | ApiResponseSet


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def _decode(name: str, value: Any) -> ApiResponse:
    if isinstance(value, list):
        return ApiResponseList(name, [_decode(name, item) for item in value])
    if isinstance(value, dict):
        return ApiResponseSet(name, dict(value))
    return ApiResponseElement(name, _scalar(value))


def is_error_payload(payload: Any) -> bool:
    return isinstance(payload, dict) and "code" in payload and "message" in payload


def decode_response(payload: Any) -> ApiResponse:
    """
    Map a JSON reply to one of the three response shapes.

    Single-key objects are named after their key (``{"status": "42"}`` is an
    element named ``status``); anything wider becomes an anonymous set.
    """
    if is_error_payload(payload):
        raise ClientApiError(str(payload.get("message")), code=str(payload.get("code")))
    if isinstance(payload, dict):
        if len(payload) == 1:
            name, value = next(iter(payload.items()))
            return _decode(name, value)
        return ApiResponseSet("", dict(payload))
    return _decode("", payload)


def element_value(response: ApiResponse) -> str:
    if isinstance(response, ApiResponseElement):
        return response.value
    raise ClientApiError(f"Expected a single value, got {type(response).__name__} '{response.name}'")


def list_items(response: ApiResponse) -> list[ApiResponse]:
    if isinstance(response, ApiResponseList):
        return response.items
    raise ClientApiError(f"Expected a list, got {type(response).__name__} '{response.name}'")


def set_field(response: ApiResponse, key: str, default: Any = None) -> Any:
    if isinstance(response, ApiResponseSet):
        return response.get(key, default)
    raise ClientApiError(f"Expected a set, got {type(response).__name__} '{response.name}'")


def to_python(response: ApiResponse) -> Any:
    """Flatten a response back into plain str/list/dict values."""
    if isinstance(response, ApiResponseElement):
        return response.value
    if isinstance(response, ApiResponseList):
        return [to_python(item) for item in response.items]
    return dict(response.fields)
