"""Lazy self-healing of a cart against catalog drift.

Shared by the cart view and the totals calculation: lines whose product is
gone, inactive, out of stock, whose selections no longer resolve or whose
quantity is below one are dropped; lines above the current ceiling are
clamped down to it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from apps.catalog.dtos import ProductSnapshot
from apps.common import get_logger

from .dtos import CartLine
from .exceptions import SpecificationMismatchError
from .protocols import ProductRepositoryProtocol
from .stock import available_stock

logger = get_logger(__name__).bind(component="carts", layer="reconcile")


@dataclass
class ReconciledLine:
    line: CartLine
    product: ProductSnapshot
    available_stock: int


@dataclass
class ReconcileResult:
    lines: List[ReconciledLine] = field(default_factory=list)
    removed_count: int = 0
    adjusted_count: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.removed_count or self.adjusted_count)

    @property
    def cart_lines(self) -> List[CartLine]:
        return [r.line for r in self.lines]


class CartReconciler:
    def __init__(self, products: ProductRepositoryProtocol):
        self.products = products

    def reconcile(self, lines: List[CartLine], store_id: int) -> ReconcileResult:
        result = ReconcileResult()
        snapshots: Dict[int, Optional[ProductSnapshot]] = {}
        for line in lines:
            if line.quantity < 1:
                logger.info(
                    "Dropping cart line without quantity",
                    product_id=line.product_id,
                    quantity=line.quantity,
                )
                result.removed_count += 1
                continue
            if line.product_id not in snapshots:
                snapshots[line.product_id] = self.products.find_active(
                    line.product_id, store_id
                )
            product = snapshots[line.product_id]
            if product is None or not product.is_active:
                logger.info(
                    "Dropping cart line for unavailable product",
                    product_id=line.product_id,
                    store_id=store_id,
                    missing=product is None,
                )
                result.removed_count += 1
                continue
            try:
                stock = available_stock(product, line.selected_specifications)
            except SpecificationMismatchError:
                logger.info(
                    "Dropping cart line with unresolvable specifications",
                    product_id=line.product_id,
                    store_id=store_id,
                )
                result.removed_count += 1
                continue
            if stock <= 0:
                logger.info(
                    "Dropping out-of-stock cart line",
                    product_id=line.product_id,
                    store_id=store_id,
                )
                result.removed_count += 1
                continue
            kept = line.copy()
            if kept.quantity > stock:
                logger.info(
                    "Clamping cart line to available stock",
                    product_id=line.product_id,
                    requested=kept.quantity,
                    available=stock,
                )
                kept.quantity = stock
                result.adjusted_count += 1
            result.lines.append(ReconciledLine(kept, product, stock))
        return result
