"""Specification-constrained stock ceilings.

A configuration is only as available as its scarcest selected option. Client
submissions are matched leniently against the product's specification values:

1. exact ``(specificationId, valueId)`` match
2. the same comparison ignoring case and surrounding whitespace
3. the option's display text against the product value's ``value`` text
4. a ``valueId`` that is malformed but starts with the ``specificationId``
   falls back to the first value of that specification
"""
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from apps.catalog.dtos import ProductSnapshot, SpecificationValueSnapshot
from apps.common import get_logger

from .dtos import SelectedSpecification
from .exceptions import SpecificationMismatchError

logger = get_logger(__name__).bind(component="carts", layer="stock")

Resolved = Tuple[SelectedSpecification, SpecificationValueSnapshot]


def _fold(value: Optional[str]) -> str:
    return (value or "").strip().casefold()


def _match_entry(
    entries: Sequence[SpecificationValueSnapshot], selection: SelectedSpecification
) -> Optional[SpecificationValueSnapshot]:
    for entry in entries:
        if (
            entry.specification_id == selection.specification_id
            and entry.value_id == selection.value_id
        ):
            return entry

    spec_id = _fold(selection.specification_id)
    value_id = _fold(selection.value_id)
    same_spec = [e for e in entries if _fold(e.specification_id) == spec_id]

    for entry in same_spec:
        if _fold(entry.value_id) == value_id:
            return entry

    texts = {t for t in (value_id, _fold(selection.value_en), _fold(selection.value_ar)) if t}
    for entry in same_spec:
        if entry.value and _fold(entry.value) in texts:
            return entry

    if same_spec and spec_id and value_id.startswith(spec_id):
        logger.debug(
            "Prefixed value id fell back to first specification value",
            specification_id=selection.specification_id,
            value_id=selection.value_id,
        )
        return same_spec[0]
    return None


def resolve_selections(
    product: ProductSnapshot, selections: Sequence[SelectedSpecification]
) -> List[Resolved]:
    """Pair every selection with the product entry it refers to.

    Raises ``SpecificationMismatchError`` for the first selection that no
    heuristic can resolve.
    """
    resolved: List[Resolved] = []
    for selection in selections:
        entry = _match_entry(product.specification_values, selection)
        if entry is None:
            logger.info(
                "Specification selection did not resolve",
                product_id=product.id,
                specification_id=selection.specification_id,
                value_id=selection.value_id,
            )
            raise SpecificationMismatchError(
                details={
                    "productId": product.id,
                    "specificationId": selection.specification_id,
                    "valueId": selection.value_id,
                }
            )
        resolved.append((selection, entry))
    return resolved


def stock_for_resolved(product: ProductSnapshot, resolved: Sequence[Resolved]) -> int:
    if not resolved:
        return max(0, product.stock)
    return max(0, min(entry.quantity for _, entry in resolved))


def available_stock(
    product: ProductSnapshot, selections: Sequence[SelectedSpecification]
) -> int:
    return stock_for_resolved(product, resolve_selections(product, selections))
