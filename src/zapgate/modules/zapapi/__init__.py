"""Control-API client for the scanner daemon."""

from .client import ZapClient
from .responses import (
    ApiResponse,
    ApiResponseElement,
    ApiResponseList,
    ApiResponseSet,
    decode_response,
    element_value,
    list_items,
    set_field,
)

__all__ = [
    "ApiResponse",
    "ApiResponseElement",
    "ApiResponseList",
    "ApiResponseSet",
    "ZapClient",
    "decode_response",
    "element_value",
    "list_items",
    "set_field",
]
