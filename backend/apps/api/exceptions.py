from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Tuple

from django.core.exceptions import (
    PermissionDenied as DjangoPermissionDenied,
    ValidationError as DjangoValidationError,
)
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import (
    AuthenticationFailed,
    MethodNotAllowed,
    NotAuthenticated,
    NotFound,
    ParseError,
    PermissionDenied,
    ValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from apps.api.utils import error_response
from apps.common import get_logger
from apps.common.i18n import BilingualText, resolve_language

logger = get_logger(__name__).bind(component="api", layer="exception")

# code -> (English, Arabic) default messages
STATUS_CODE_DEFAULTS: Dict[int, Tuple[str, BilingualText]] = {
    status.HTTP_400_BAD_REQUEST: (
        "VALIDATION_ERROR",
        BilingualText("Validation failed", "فشل التحقق من البيانات"),
    ),
    status.HTTP_401_UNAUTHORIZED: (
        "UNAUTHORIZED",
        BilingualText("Authentication required", "يجب تسجيل الدخول"),
    ),
    status.HTTP_403_FORBIDDEN: (
        "FORBIDDEN",
        BilingualText(
            "You do not have permission to perform this action",
            "ليس لديك صلاحية لتنفيذ هذا الإجراء",
        ),
    ),
    status.HTTP_404_NOT_FOUND: (
        "NOT_FOUND",
        BilingualText("Resource not found", "المورد غير موجود"),
    ),
    status.HTTP_405_METHOD_NOT_ALLOWED: (
        "METHOD_NOT_ALLOWED",
        BilingualText("Method not allowed", "الطريقة غير مسموحة"),
    ),
    status.HTTP_409_CONFLICT: (
        "CONFLICT",
        BilingualText("Resource conflict", "تعارض في البيانات"),
    ),
    status.HTTP_500_INTERNAL_SERVER_ERROR: (
        "SERVER_ERROR",
        BilingualText("Something went wrong", "حدث خطأ ما"),
    ),
}

_SERVER_ERROR = STATUS_CODE_DEFAULTS[status.HTTP_500_INTERNAL_SERVER_ERROR][1]


class ApplicationError(Exception):
    """
    Domain-level application error meant to be raised from services or views.

    Args:
        code: Machine readable error code.
        message: English explanation of the error.
        message_ar: Arabic explanation of the error.
        status_code: Optional explicit HTTP status. If omitted, code mapping is used.
        details: Optional structured details for clients.
        hint: Optional hint for remediation.
        headers: Optional mapping of headers to include in the response.
    """

    code = "SERVER_ERROR"
    status_code: Optional[int] = None

    def __init__(
        self,
        code: Optional[str] = None,
        message: str = "",
        *,
        message_ar: str = "",
        status_code: Optional[int] = None,
        details: Optional[Any] = None,
        hint: Optional[str] = None,
        headers: Optional[Mapping[str, Any]] = None,
    ):
        super().__init__(message)
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.text = BilingualText(message, message_ar)
        self.details = details
        self.hint = hint
        self.headers = headers

    @property
    def message(self) -> str:
        return self.text.en

    @property
    def message_ar(self) -> str:
        return self.text.ar

    def to_response(self, language: Optional[str] = None) -> Response:
        return error_response(
            self.code,
            self.text.for_language(language),
            self.details,
            http_status=self.status_code,
            message_ar=self.text.ar or None,
            hint=self.hint,
            headers=self.headers,
        )


def global_exception_handler(exc: Exception, context: Dict[str, Any]) -> Response:
    """
    Central exception handler for DRF views returning structured bilingual errors.
    """

    bound_logger = _bind_logger(context)
    language = resolve_language(context.get("request"))

    if isinstance(exc, ApplicationError):
        bound_logger.info(
            "Handled application error",
            code=exc.code,
            status=exc.status_code,
        )
        return exc.to_response(language)

    if isinstance(exc, DjangoValidationError):
        exc = ValidationError(_normalize_django_validation_error(exc))

    response = drf_exception_handler(exc, context)
    if response is not None:
        return _from_drf_exception(exc, response, bound_logger, language)

    bound_logger.exception("Unhandled exception bubbled to global handler")
    return error_response(
        "SERVER_ERROR",
        _SERVER_ERROR.for_language(language),
        http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message_ar=_SERVER_ERROR.ar,
    )


def _bind_logger(context: Dict[str, Any]):
    log = logger
    view = context.get("view")
    request = context.get("request")
    if view:
        log = log.bind(view=type(view).__name__)
    if request is not None:
        log = log.bind(
            method=getattr(request, "method", None),
            path=getattr(request, "path", None),
        )
    return log


def _from_drf_exception(
    exc: Exception, response: Response, bound_logger, language: str
) -> Response:
    status_code = response.status_code
    code, text, details = _normalize_payload(exc, response.data, status_code)
    headers = dict(response.headers) if getattr(response, "headers", None) else None

    if status_code >= 500:
        bound_logger.error("Converted server error", code=code, status=status_code)
    else:
        bound_logger.info("Converted API exception", code=code, status=status_code)

    return error_response(
        code,
        text.for_language(language),
        details,
        http_status=status_code,
        message_ar=text.ar,
        headers=headers,
    )


def _normalize_django_validation_error(exc: DjangoValidationError):
    if hasattr(exc, "message_dict"):
        return exc.message_dict
    if hasattr(exc, "messages"):
        return list(exc.messages)
    return {"detail": getattr(exc, "message", "Validation failed")}


def _normalize_payload(
    exc: Exception, payload: Any, status_code: int
) -> Tuple[str, BilingualText, Optional[Any]]:
    if isinstance(exc, (ValidationError, ParseError)):
        code, text = STATUS_CODE_DEFAULTS[status.HTTP_400_BAD_REQUEST]
        return code, _with_detail(payload, text, status_code), payload
    if isinstance(exc, (NotAuthenticated, AuthenticationFailed)):
        code, text = STATUS_CODE_DEFAULTS[status.HTTP_401_UNAUTHORIZED]
        return code, _with_detail(payload, text, status_code), None
    if isinstance(exc, (PermissionDenied, DjangoPermissionDenied)):
        code, text = STATUS_CODE_DEFAULTS[status.HTTP_403_FORBIDDEN]
        return code, _with_detail(payload, text, status_code), None
    if isinstance(exc, (NotFound, Http404)):
        code, text = STATUS_CODE_DEFAULTS[status.HTTP_404_NOT_FOUND]
        return code, _with_detail(payload, text, status_code), None
    if isinstance(exc, MethodNotAllowed):
        code, text = STATUS_CODE_DEFAULTS[status.HTTP_405_METHOD_NOT_ALLOWED]
        return code, _with_detail(payload, text, status_code), None

    code, text = STATUS_CODE_DEFAULTS.get(
        status_code,
        (
            "SERVER_ERROR" if status_code >= 500 else "UNKNOWN_ERROR",
            _SERVER_ERROR if status_code >= 500 else BilingualText("Request failed", "فشل الطلب"),
        ),
    )
    include = status_code < 500 and isinstance(payload, (dict, list)) and bool(payload)
    return code, _with_detail(payload, text, status_code), payload if include else None


def _with_detail(payload: Any, fallback: BilingualText, status_code: int) -> BilingualText:
    """Prefer DRF's ``detail`` string for the English text; Arabic stays the default."""
    if status_code >= 500:
        return _SERVER_ERROR
    if isinstance(payload, dict) and isinstance(payload.get("detail"), str):
        return BilingualText(payload["detail"], fallback.ar)
    if isinstance(payload, str):
        return BilingualText(payload, fallback.ar)
    return fallback


__all__ = ["ApplicationError", "global_exception_handler"]
