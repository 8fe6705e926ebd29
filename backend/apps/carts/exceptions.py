"""Cart error taxonomy.

Every error is an ``ApplicationError`` so the global DRF handler renders it as
the standard bilingual error envelope; services raise them and never build
responses themselves.
"""
from __future__ import annotations

from typing import Any, Optional

from rest_framework import status

from apps.api.exceptions import ApplicationError


class CartError(ApplicationError):
    default_message = "Cart operation failed"
    default_message_ar = "فشلت عملية السلة"

    def __init__(
        self,
        message: Optional[str] = None,
        message_ar: Optional[str] = None,
        *,
        details: Optional[Any] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(
            None,
            message or self.default_message,
            message_ar=message_ar or self.default_message_ar,
            details=details,
            hint=hint,
        )


class CartValidationError(CartError):
    code = "VALIDATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid cart request"
    default_message_ar = "طلب السلة غير صالح"


class CartNotFoundError(CartError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"
    default_message_ar = "غير موجود"


class StockError(CartError):
    code = "INSUFFICIENT_STOCK"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Insufficient stock"
    default_message_ar = "الكمية المتوفرة غير كافية"


class SpecificationMismatchError(CartError):
    code = "SPECIFICATION_MISMATCH"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Selected specification is not available for this product"
    default_message_ar = "المواصفة المختارة غير متوفرة لهذا المنتج"


class CartAuthorizationError(CartError):
    code = "UNAUTHORIZED"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"
    default_message_ar = "يجب تسجيل الدخول"


class CartConflictError(CartError):
    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Cart was modified concurrently, please retry"
    default_message_ar = "تم تعديل السلة في نفس الوقت، يرجى المحاولة مرة أخرى"


__all__ = [
    "CartError",
    "CartValidationError",
    "CartNotFoundError",
    "StockError",
    "SpecificationMismatchError",
    "CartAuthorizationError",
    "CartConflictError",
]
