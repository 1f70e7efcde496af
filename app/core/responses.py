"""
Response Envelope

Every HTTP body leaves the service as
``{success, statusCode, message, data?, timestamp}``. Routes and exception
handlers build it through :func:`envelope_response`, so the transport status
and the envelope ``statusCode`` never diverge.
"""

from typing import Any, Mapping, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.core.utils import utcnow


DEFAULT_SUCCESS_MESSAGE = "Request successful"


def envelope_timestamp() -> str:
    """ISO-8601 UTC with millisecond precision, e.g. ``2024-12-01T09:30:00.123Z``."""
    return utcnow().isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_envelope(status_code: int, message: str, data: Any = None) -> dict:
    """
    Build the wire envelope.

    Args:
        status_code: Logical status, also used as the HTTP status
        message: Human readable outcome
        data: Payload; pydantic models are dumped with their camelCase aliases.
            Omitted from the body when None.

    Returns:
        dict: JSON-ready envelope with a timestamp taken at build time
    """
    envelope = {
        "success": status_code < 400,
        "statusCode": status_code,
        "message": message,
    }
    if data is not None:
        envelope["data"] = jsonable_encoder(data, by_alias=True)
    envelope["timestamp"] = envelope_timestamp()
    return envelope


def is_outcome(value: Any) -> bool:
    """True when a handler already returned ``{statusCode, message, data?}``."""
    return (
        isinstance(value, Mapping)
        and "statusCode" in value
        and "message" in value
    )


def normalize_outcome(value: Any) -> dict:
    """
    Turn any handler outcome into an envelope.

    A mapping carrying ``statusCode`` and ``message`` is spread into the
    envelope as-is; any other value is wrapped as a plain 200 success.
    """
    if is_outcome(value):
        return build_envelope(
            int(value["statusCode"]), str(value["message"]), value.get("data")
        )
    return build_envelope(200, DEFAULT_SUCCESS_MESSAGE, value)


def envelope_response(
    status_code: int,
    message: str,
    data: Any = None,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    body = normalize_outcome(
        {"statusCode": status_code, "message": message, "data": data}
    )
    return JSONResponse(
        status_code=body["statusCode"], content=body, headers=dict(headers or {})
    )


def outcome_response(value: Any) -> JSONResponse:
    """Respond with a raw handler value, using its envelope status as HTTP status."""
    body = normalize_outcome(value)
    return JSONResponse(status_code=body["statusCode"], content=body)
