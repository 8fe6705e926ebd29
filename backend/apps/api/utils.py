from collections.abc import Mapping
from typing import Any, Dict, Optional

from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.serializers import as_serializer_error

ERROR_STATUS_MAP = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "UNAUTHORIZED": status.HTTP_401_UNAUTHORIZED,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "CONFLICT": status.HTTP_409_CONFLICT,
    "INSUFFICIENT_STOCK": status.HTTP_409_CONFLICT,
    "SPECIFICATION_MISMATCH": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "SERVER_ERROR": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _normalize_details(details: Any) -> Any:
    if isinstance(details, ValidationError):
        return as_serializer_error(details)
    if isinstance(details, Mapping):
        return dict(details)
    if isinstance(details, Exception):
        return {"type": details.__class__.__name__}
    return details


def error_response(
    code: str,
    message: str,
    details: Optional[Any] = None,
    http_status: Optional[int] = None,
    *,
    message_ar: Optional[str] = None,
    hint: Optional[str] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> Response:
    """
    Build the ``{"error": {...}}`` body every cart endpoint answers failures with.

    ``message`` is already in the request language; ``message_ar`` is always
    attached so storefronts can show the Arabic text regardless. Without an
    explicit ``http_status`` the code decides the status (400 for unknown codes).
    ``headers`` carries through things like ``WWW-Authenticate`` from DRF.
    """
    code = code.strip().upper()
    message = message.strip()
    if not code or not message:
        raise ValueError("error_response requires a non-empty code and message")

    status_code = (
        int(http_status)
        if http_status is not None
        else ERROR_STATUS_MAP.get(code, status.HTTP_400_BAD_REQUEST)
    )

    payload: Dict[str, Any] = {
        "code": code,
        "message": message,
        "status": status_code,
    }
    if message_ar:
        payload["messageAr"] = message_ar.strip()
    if details is not None:
        payload["details"] = _normalize_details(details)
    if hint is not None:
        payload["hint"] = hint

    return Response(
        {"error": payload},
        status=status_code,
        headers={str(k): str(v) for k, v in headers.items()} if headers else None,
    )
