from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional

from django.utils.dateparse import parse_datetime

from apps.catalog.dtos import SpecificationRecord
from apps.common import get_logger

from .dtos import (
    CartDTO,
    CartLine,
    CartLineDTO,
    CartOwner,
    CartState,
    SelectedSpecification,
)
from .models import Cart
from .pricing import current_price
from .reconciliation import ReconcileResult

logger = get_logger(__name__).bind(component="carts", layer="mapper")


class SelectedSpecificationMapper:
    @staticmethod
    def to_storage(spec: SelectedSpecification) -> Dict[str, str]:
        return {
            "specificationId": spec.specification_id,
            "valueId": spec.value_id,
            "titleAr": spec.title_ar,
            "titleEn": spec.title_en,
            "valueAr": spec.value_ar,
            "valueEn": spec.value_en,
        }

    @staticmethod
    def from_storage(raw: Mapping[str, Any]) -> Optional[SelectedSpecification]:
        spec_id = raw.get("specificationId")
        value_id = raw.get("valueId")
        if not spec_id or not value_id:
            return None
        return SelectedSpecification(
            specification_id=str(spec_id),
            value_id=str(value_id),
            title_ar=str(raw.get("titleAr") or ""),
            title_en=str(raw.get("titleEn") or ""),
            value_ar=str(raw.get("valueAr") or ""),
            value_en=str(raw.get("valueEn") or ""),
        )

    @staticmethod
    def enrich(
        spec: SelectedSpecification, records: Mapping[str, Optional[SpecificationRecord]]
    ) -> SelectedSpecification:
        """Canonical bilingual text from the catalog, cached text when the row is gone."""
        record = records.get(spec.specification_id)
        if record is None:
            return spec
        option = record.option(spec.value_id)
        return SelectedSpecification(
            specification_id=spec.specification_id,
            value_id=spec.value_id,
            title_ar=record.title_ar or spec.title_ar,
            title_en=record.title_en or spec.title_en,
            value_ar=(option.value_ar if option else "") or spec.value_ar,
            value_en=(option.value_en if option else "") or spec.value_en,
        )


class CartLineMapper:
    @staticmethod
    def to_storage(line: CartLine) -> Dict[str, Any]:
        return {
            "product": line.product_id,
            "quantity": line.quantity,
            "variant": line.variant,
            "priceAtAdd": str(line.price_at_add),
            "selectedSpecifications": [
                SelectedSpecificationMapper.to_storage(s)
                for s in line.selected_specifications
            ],
            "selectedColors": list(line.selected_colors),
            "addedAt": line.added_at.isoformat() if line.added_at else None,
        }

    @staticmethod
    def from_storage(raw: Any) -> Optional[CartLine]:
        if not isinstance(raw, dict):
            return None
        try:
            product_id = int(raw.get("product"))
            quantity = int(raw.get("quantity"))
            price_at_add = Decimal(str(raw.get("priceAtAdd", "0")))
        except (TypeError, ValueError, InvalidOperation):
            return None
        specs = [
            SelectedSpecificationMapper.from_storage(s)
            for s in raw.get("selectedSpecifications") or []
            if isinstance(s, dict)
        ]
        added_at: Optional[datetime] = None
        if raw.get("addedAt"):
            added_at = parse_datetime(str(raw["addedAt"]))
        return CartLine(
            product_id=product_id,
            quantity=quantity,
            price_at_add=price_at_add,
            variant=raw.get("variant") or None,
            selected_specifications=[s for s in specs if s is not None],
            selected_colors=[str(c) for c in raw.get("selectedColors") or []],
            added_at=added_at,
        )


class CartMapper:
    def __init__(self, line_mapper: Optional[CartLineMapper] = None) -> None:
        self.line_mapper = line_mapper or CartLineMapper()

    def to_state(self, cart: Cart) -> CartState:
        lines: List[CartLine] = []
        for raw in cart.items or []:
            line = self.line_mapper.from_storage(raw)
            if line is None:
                logger.warning("Discarding unreadable cart line", cart_id=cart.id)
                continue
            lines.append(line)
        owner = CartOwner(
            store_id=cart.store_id,
            user_id=cart.user_id,
            guest_id=cart.guest_id if cart.user_id is None else None,
        )
        return CartState(id=cart.id, owner=owner, lines=lines, version=cart.version)

    def lines_to_storage(self, lines: Iterable[CartLine]) -> List[Dict[str, Any]]:
        return [self.line_mapper.to_storage(line) for line in lines]

    def to_dto(
        self,
        state: CartState,
        reconciled: ReconcileResult,
        records: Mapping[str, Optional[SpecificationRecord]],
    ) -> CartDTO:
        items = [
            CartLineDTO(
                product_id=r.line.product_id,
                title=r.product.title,
                quantity=r.line.quantity,
                price_at_add=r.line.price_at_add,
                current_price=current_price(r.product),
                compare_at_price=r.product.compare_at_price,
                available_stock=r.available_stock,
                variant=r.line.variant,
                selected_specifications=[
                    SelectedSpecificationMapper.enrich(s, records)
                    for s in r.line.selected_specifications
                ],
                selected_colors=list(r.line.selected_colors),
                added_at=r.line.added_at,
            )
            for r in reconciled.lines
        ]
        return CartDTO(
            id=state.id,
            store_id=state.owner.store_id,
            user_id=state.owner.user_id,
            guest_id=state.owner.guest_id,
            items=items,
            items_count=sum(i.quantity for i in items),
            removed_count=reconciled.removed_count,
            adjusted_count=reconciled.adjusted_count,
            version=state.version,
        )
