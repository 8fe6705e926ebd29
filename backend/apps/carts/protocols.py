from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from apps.catalog.dtos import ProductSnapshot, SpecificationRecord
    from .dtos import CartDTO, CartLine, CartOwner, CartState
    from .models import Cart
    from .reconciliation import ReconcileResult


class CartRepositoryProtocol(Protocol):
    def get_for_owner(self, owner: "CartOwner") -> Optional["Cart"]:
        ...

    def create_for_owner(self, owner: "CartOwner") -> "Cart":
        ...

    def save_items(
        self, cart_id: int, items: List[Dict[str, Any]], expected_version: int
    ) -> bool:
        ...

    def delete_if_version(self, cart_id: int, expected_version: int) -> bool:
        ...


class ProductRepositoryProtocol(Protocol):
    def find_active(self, product_id: int, store_id: int) -> Optional["ProductSnapshot"]:
        ...


class SpecificationRepositoryProtocol(Protocol):
    def find_batch(
        self, specification_ids: Iterable[str]
    ) -> Dict[str, "SpecificationRecord"]:
        ...


class TaxPolicyProtocol(Protocol):
    rate: Decimal

    def tax_for(self, subtotal: Decimal) -> Decimal:
        ...


class CartMapperProtocol(Protocol):
    def to_state(self, cart: "Cart") -> "CartState":
        ...

    def lines_to_storage(self, lines: Iterable["CartLine"]) -> List[Dict[str, Any]]:
        ...

    def to_dto(
        self,
        state: "CartState",
        reconciled: "ReconcileResult",
        records: Dict[str, Optional["SpecificationRecord"]],
    ) -> "CartDTO":
        ...
