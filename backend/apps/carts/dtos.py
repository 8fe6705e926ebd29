from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from .exceptions import CartValidationError


@dataclass(frozen=True)
class SelectedSpecification:
    specification_id: str
    value_id: str
    title_ar: str = ""
    title_en: str = ""
    value_ar: str = ""
    value_en: str = ""

    @property
    def key(self) -> Tuple[str, str]:
        return (self.specification_id, self.value_id)


@dataclass
class CartLine:
    product_id: int
    quantity: int
    price_at_add: Decimal
    variant: Optional[str] = None
    selected_specifications: List[SelectedSpecification] = field(default_factory=list)
    selected_colors: List[str] = field(default_factory=list)
    added_at: Optional[datetime] = None

    def copy(self) -> "CartLine":
        return CartLine(
            product_id=self.product_id,
            quantity=self.quantity,
            price_at_add=self.price_at_add,
            variant=self.variant,
            selected_specifications=list(self.selected_specifications),
            selected_colors=list(self.selected_colors),
            added_at=self.added_at,
        )


@dataclass(frozen=True)
class CartOwner:
    store_id: int
    user_id: Optional[int] = None
    guest_id: Optional[str] = None

    def __post_init__(self):
        if self.store_id in (None, ""):
            raise CartValidationError("Store is required", "المتجر مطلوب")
        if (self.user_id is None) == (not self.guest_id):
            raise CartValidationError(
                "Exactly one of user or guest id is required",
                "يجب تحديد المستخدم أو معرف الزائر فقط",
            )

    @property
    def is_guest(self) -> bool:
        return self.user_id is None


@dataclass
class CartState:
    id: int
    owner: CartOwner
    lines: List[CartLine]
    version: int


@dataclass
class CartLineDTO:
    product_id: int
    title: str
    quantity: int
    price_at_add: Decimal
    current_price: Decimal
    compare_at_price: Optional[Decimal]
    available_stock: int
    variant: Optional[str]
    selected_specifications: List[SelectedSpecification]
    selected_colors: List[str]
    added_at: Optional[datetime]


@dataclass
class CartDTO:
    id: int
    store_id: int
    user_id: Optional[int]
    guest_id: Optional[str]
    items: List[CartLineDTO]
    items_count: int
    removed_count: int = 0
    adjusted_count: int = 0
    version: int = 0


@dataclass
class TotalsLineDTO:
    product_id: int
    quantity: int
    list_price: Decimal
    current_price: Decimal
    item_total: Decimal
    item_discount: Decimal


@dataclass
class TotalsDTO:
    items: List[TotalsLineDTO]
    items_count: int
    subtotal: Decimal
    total_discount: Decimal
    tax_rate: Decimal
    tax: Decimal
    total: Decimal
    removed_count: int = 0
    adjusted_count: int = 0


@dataclass
class MergeResult:
    merged_count: int = 0
    updated_count: int = 0
    skipped_count: int = 0
