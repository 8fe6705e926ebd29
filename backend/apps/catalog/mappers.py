from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List

from .dtos import (
    ProductSnapshot,
    SpecificationOption,
    SpecificationRecord,
    SpecificationValueSnapshot,
)
from .models import Product, ProductSpecification


def _as_int(raw: Any, default: int = 0) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def _as_decimal(raw: Any, default: str = "0") -> Decimal:
    try:
        return Decimal(str(raw))
    except (InvalidOperation, TypeError, ValueError):
        return Decimal(default)


class ProductSnapshotMapper:
    @staticmethod
    def spec_values(raw_values: Iterable[Any]) -> List[SpecificationValueSnapshot]:
        out: List[SpecificationValueSnapshot] = []
        for raw in raw_values or []:
            if not isinstance(raw, dict):
                continue
            spec_id = raw.get("specificationId") or raw.get("specification_id")
            if spec_id in (None, ""):
                continue
            out.append(
                SpecificationValueSnapshot(
                    specification_id=str(spec_id),
                    value_id=str(raw.get("valueId") or raw.get("value_id") or ""),
                    value=str(raw.get("value") or ""),
                    title=str(raw.get("title") or ""),
                    quantity=max(0, _as_int(raw.get("quantity"))),
                )
            )
        return out

    @staticmethod
    def to_snapshot(product: Product) -> ProductSnapshot:
        compare_at = product.compare_at_price
        return ProductSnapshot(
            id=product.id,
            store_id=product.store_id,
            title=product.title,
            price=_as_decimal(product.price),
            compare_at_price=None if compare_at is None else _as_decimal(compare_at),
            is_on_sale=bool(product.is_on_sale),
            sale_percentage=_as_decimal(product.sale_percentage),
            stock=max(0, _as_int(product.stock)),
            is_active=bool(product.is_active),
            specification_values=ProductSnapshotMapper.spec_values(
                product.specification_values
            ),
        )


class SpecificationRecordMapper:
    @staticmethod
    def to_record(spec: ProductSpecification) -> SpecificationRecord:
        options = []
        for raw in spec.values or []:
            if not isinstance(raw, dict):
                continue
            value_id = raw.get("valueId") or raw.get("value_id") or raw.get("_id")
            if value_id in (None, ""):
                continue
            options.append(
                SpecificationOption(
                    value_id=str(value_id),
                    value_ar=str(raw.get("valueAr") or raw.get("value_ar") or ""),
                    value_en=str(raw.get("valueEn") or raw.get("value_en") or ""),
                )
            )
        return SpecificationRecord(
            id=str(spec.id),
            title_ar=spec.title_ar,
            title_en=spec.title_en,
            values=options,
        )
