"""
Response normalization helpers.

Remote SDKs and gateways are not consistent about response envelopes: the
same payload may arrive flat (``{"fileId": ...}``) or wrapped
(``{"data": {"fileId": ...}}``). Every adapter extracts fields through
:func:`extract_field` so that the lookup order is defined in one place:

1. the field inside the first wrapper key whose value is a mapping;
2. the field at the top level of the payload.
"""
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Type

from loris_gateway.core.exceptions import GatewayError
from loris_gateway.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_WRAPPERS = ("data",)


def extract_field(
    payload: Any,
    field: str,
    wrappers: Sequence[str] = DEFAULT_WRAPPERS
) -> Optional[Any]:
    """
    Extract a field from a wrapped or flat response.

    Args:
        payload: Decoded response body
        field: Field name to look up
        wrappers: Envelope keys to look inside before the top level

    Returns:
        The field value, or None when the field is absent in both shapes
    """
    if not isinstance(payload, Mapping):
        return None

    for wrapper in wrappers:
        inner = payload.get(wrapper)
        if isinstance(inner, Mapping) and inner.get(field) is not None:
            return inner[field]

    return payload.get(field)


def require_fields(
    payload: Any,
    fields: Iterable[str],
    error_cls: Type[GatewayError],
    message: str,
    wrappers: Sequence[str] = DEFAULT_WRAPPERS
) -> Dict[str, Any]:
    """
    Extract several fields, failing if any of them is missing.

    Args:
        payload: Decoded response body
        fields: Field names that must all be present
        error_cls: Error type to raise
        message: Public error message
        wrappers: Envelope keys to look inside before the top level

    Returns:
        Mapping of field name to value

    Raises:
        error_cls: If at least one field is missing
    """
    values = {field: extract_field(payload, field, wrappers) for field in fields}
    missing = [field for field, value in values.items() if value in (None, "")]
    if missing:
        keys = sorted(payload.keys()) if isinstance(payload, Mapping) else type(payload).__name__
        logger.error(f"Unexpected response shape, missing {missing}; got keys {keys}")
        raise error_cls(message, context={"missing_fields": missing})
    return values


def error_message(payload: Any, default: str) -> str:
    """Pull a human readable message out of a remote error body."""
    if isinstance(payload, Mapping):
        for key in ("errorMessage", "message"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
        nested = payload.get("error")
        if isinstance(nested, Mapping) and isinstance(nested.get("message"), str):
            return nested["message"]
    return default
