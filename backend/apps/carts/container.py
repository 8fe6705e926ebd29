from __future__ import annotations

from django.conf import settings

from apps.catalog.repositories import ProductRepository, SpecificationRepository

from .mappers import CartLineMapper, CartMapper
from .pricing import FlatRateTaxPolicy
from .repositories import CartRepository
from .services import CartService


def build_cart_service() -> CartService:
    cart_mapper = CartMapper(CartLineMapper())
    return CartService(
        carts=CartRepository(),
        products=ProductRepository(),
        specifications=SpecificationRepository(),
        cart_mapper=cart_mapper,
        tax_policy=FlatRateTaxPolicy(settings.CART_TAX_RATE),
        max_write_attempts=settings.CART_MAX_WRITE_ATTEMPTS,
        order_insensitive_matching=settings.CART_ORDER_INSENSITIVE_MATCHING,
    )
