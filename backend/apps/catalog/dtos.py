from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional


@dataclass(frozen=True)
class SpecificationValueSnapshot:
    specification_id: str
    value_id: str
    value: str = ""
    title: str = ""
    quantity: int = 0


@dataclass(frozen=True)
class ProductSnapshot:
    id: int
    store_id: int
    title: str
    price: Decimal
    stock: int
    is_active: bool = True
    compare_at_price: Optional[Decimal] = None
    is_on_sale: bool = False
    sale_percentage: Decimal = Decimal("0")
    specification_values: List[SpecificationValueSnapshot] = field(default_factory=list)


@dataclass(frozen=True)
class SpecificationOption:
    value_id: str
    value_ar: str = ""
    value_en: str = ""


@dataclass(frozen=True)
class SpecificationRecord:
    id: str
    title_ar: str = ""
    title_en: str = ""
    values: List[SpecificationOption] = field(default_factory=list)

    def option(self, value_id: str) -> Optional[SpecificationOption]:
        for option in self.values:
            if option.value_id == value_id:
                return option
        return None


"""Read-only catalog snapshots handed to the cart engine."""
