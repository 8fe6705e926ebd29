"""Who a cart request acts for: the store it is scoped to and the cart owner."""
from __future__ import annotations

import re
import uuid
from typing import Any, Optional, Tuple

from django.conf import settings

from apps.catalog.repositories import StoreRepository
from apps.common import get_logger

from .dtos import CartOwner
from .exceptions import CartAuthorizationError, CartNotFoundError, CartValidationError

logger = get_logger(__name__).bind(component="carts", layer="identity")

GUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def _first_present(*values: Any) -> Optional[str]:
    for value in values:
        if value not in (None, ""):
            return str(value).strip()
    return None


def _body_value(request, key: str) -> Any:
    data = getattr(request, "data", None)
    if hasattr(data, "get"):
        return data.get(key)
    return None


def resolve_store_id(request, stores: Optional[StoreRepository] = None) -> int:
    raw = _first_present(
        request.headers.get(settings.STORE_ID_HEADER),
        request.query_params.get("storeId"),
    )
    if raw is None:
        raise CartValidationError(
            "Store is required", "المتجر مطلوب", hint=f"Send the {settings.STORE_ID_HEADER} header"
        )
    try:
        store_id = int(raw)
    except ValueError:
        raise CartValidationError(
            "Store id must be an integer", "معرف المتجر يجب أن يكون رقمًا", details={"storeId": raw}
        )
    stores = stores or StoreRepository()
    if not stores.is_active(store_id):
        logger.info("Request for unknown or inactive store", store_id=store_id)
        raise CartNotFoundError("Store not found", "المتجر غير موجود", details={"storeId": store_id})
    return store_id


def authenticated_user_id(request) -> Optional[int]:
    user = getattr(request, "user", None)
    if user is not None and getattr(user, "is_authenticated", False):
        return int(user.pk)
    return None


def require_user_id(request) -> int:
    user_id = authenticated_user_id(request)
    if user_id is None:
        raise CartAuthorizationError()
    return user_id


def validate_guest_id(raw: Optional[str]) -> str:
    if not raw or not GUEST_ID_PATTERN.match(raw):
        raise CartValidationError(
            "Guest id is invalid",
            "معرف الزائر غير صالح",
            details={"guestId": raw},
            hint="Use 1-64 letters, digits, '-' or '_'",
        )
    return raw


def requested_guest_id(request) -> Optional[str]:
    raw = _first_present(
        request.headers.get(settings.GUEST_ID_HEADER),
        request.query_params.get("guestId"),
        _body_value(request, "guestId"),
    )
    return validate_guest_id(raw) if raw is not None else None


def resolve_owner(request, store_id: int) -> Tuple[CartOwner, Optional[str]]:
    """
    Authenticated callers own their user cart; anyone else shops as a guest.
    Returns the owner and, when a fresh guest id had to be issued, that id so
    the response can hand it back to the client.
    """
    user_id = authenticated_user_id(request)
    if user_id is not None:
        return CartOwner(store_id=store_id, user_id=user_id), None
    guest_id = requested_guest_id(request)
    if guest_id is not None:
        return CartOwner(store_id=store_id, guest_id=guest_id), None
    issued = uuid.uuid4().hex
    logger.debug("Issued guest id", store_id=store_id, guest_id=issued)
    return CartOwner(store_id=store_id, guest_id=issued), issued
