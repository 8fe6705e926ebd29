from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List

from apps.catalog.dtos import ProductSnapshot

from .dtos import TotalsDTO, TotalsLineDTO
from .protocols import TaxPolicyProtocol

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def quantize_money(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def current_price(product: ProductSnapshot) -> Decimal:
    """Sale price when the product is on sale with a positive percentage, else list price."""
    price = Decimal(product.price)
    if product.is_on_sale and product.sale_percentage and product.sale_percentage > 0:
        return price * (1 - Decimal(product.sale_percentage) / HUNDRED)
    return price


class FlatRateTaxPolicy:
    def __init__(self, rate: Decimal):
        rate = Decimal(rate)
        if rate < 0:
            raise ValueError("Tax rate must not be negative")
        self.rate = rate

    def tax_for(self, subtotal: Decimal) -> Decimal:
        return subtotal * self.rate


class TotalsCalculator:
    def __init__(self, tax_policy: TaxPolicyProtocol):
        self.tax_policy = tax_policy

    def line_totals(self, product: ProductSnapshot, quantity: int) -> TotalsLineDTO:
        list_price = Decimal(product.price)
        price_now = current_price(product)
        return TotalsLineDTO(
            product_id=product.id,
            quantity=quantity,
            list_price=list_price,
            current_price=price_now,
            item_total=price_now * quantity,
            item_discount=(list_price - price_now) * quantity,
        )

    def totals(self, priced_lines: Iterable[tuple]) -> TotalsDTO:
        """``priced_lines`` yields ``(product_snapshot, quantity)`` pairs."""
        items: List[TotalsLineDTO] = [
            self.line_totals(product, quantity) for product, quantity in priced_lines
        ]
        subtotal = sum((i.item_total for i in items), Decimal("0"))
        total_discount = sum((i.item_discount for i in items), Decimal("0"))
        tax = self.tax_policy.tax_for(subtotal)
        return TotalsDTO(
            items=items,
            items_count=sum(i.quantity for i in items),
            subtotal=subtotal,
            total_discount=total_discount,
            tax_rate=self.tax_policy.rate,
            tax=tax,
            total=subtotal + tax,
        )
