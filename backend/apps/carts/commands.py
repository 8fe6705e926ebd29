from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .dtos import SelectedSpecification
from .exceptions import CartValidationError


def _text(raw: Any) -> str:
    if raw is None:
        return ""
    return str(raw).strip()


def _product_id(payload: Dict[str, Any]) -> Optional[int]:
    pid = payload.get("productId") or payload.get("product_id") or payload.get("product")
    if isinstance(pid, dict):
        pid = pid.get("id")
    try:
        return int(pid) if pid is not None else None
    except (ValueError, TypeError):
        return None


def _quantity(raw: Any) -> Optional[int]:
    if isinstance(raw, bool):
        return None
    try:
        return int(raw)
    except (ValueError, TypeError):
        return None


def specification_from_raw(raw: Any) -> Optional[SelectedSpecification]:
    """Fold the legacy ``value``/``title`` aliases into one canonical selection.

    ``value`` is treated as the English display text and, when no ``valueId``
    was sent, as the id too; stock resolution later canonicalizes the id.
    """
    if not isinstance(raw, dict):
        return None
    spec_id = _text(raw.get("specificationId") or raw.get("specification_id"))
    value_id = _text(raw.get("valueId") or raw.get("value_id"))
    value = _text(raw.get("value"))
    if not spec_id or not (value_id or value):
        return None
    return SelectedSpecification(
        specification_id=spec_id,
        value_id=value_id or value,
        title_ar=_text(raw.get("titleAr")),
        title_en=_text(raw.get("titleEn") or raw.get("title")),
        value_ar=_text(raw.get("valueAr")),
        value_en=_text(raw.get("valueEn") or value),
    )


def specifications_from_raw(raw_list: Any) -> List[SelectedSpecification]:
    if raw_list in (None, ""):
        return []
    if not isinstance(raw_list, (list, tuple)):
        raise CartValidationError(
            "selectedSpecifications must be a list",
            "يجب أن تكون المواصفات المختارة قائمة",
        )
    out: List[SelectedSpecification] = []
    for index, raw in enumerate(raw_list):
        spec = specification_from_raw(raw)
        if spec is None:
            raise CartValidationError(
                "Each selected specification needs specificationId and valueId",
                "كل مواصفة مختارة تحتاج إلى معرف المواصفة ومعرف القيمة",
                details={"index": index},
            )
        out.append(spec)
    return out


def colors_from_raw(raw_list: Any) -> List[str]:
    if raw_list in (None, ""):
        return []
    if isinstance(raw_list, str):
        return [raw_list]
    if not isinstance(raw_list, (list, tuple)):
        raise CartValidationError(
            "selectedColors must be a list", "يجب أن تكون الألوان المختارة قائمة"
        )
    return [str(c) for c in raw_list if c not in (None, "")]


def _variant(raw: Any) -> Optional[str]:
    value = _text(raw)
    return value or None


@dataclass
class AddItemCommand:
    product_id: int
    quantity: int
    variant: Optional[str] = None
    specifications: List[SelectedSpecification] = field(default_factory=list)
    colors: List[str] = field(default_factory=list)

    @staticmethod
    def from_raw(payload: Dict[str, Any]) -> "AddItemCommand":
        if not isinstance(payload, dict):
            raise CartValidationError("Payload must be an object", "يجب أن تكون البيانات كائنًا")
        product_id = _product_id(payload)
        quantity = _quantity(payload.get("quantity"))
        if not product_id or quantity is None or quantity < 1:
            raise CartValidationError(
                "Product and quantity are required",
                "المنتج والكمية مطلوبان",
                details={"product": product_id, "quantity": payload.get("quantity")},
            )
        return AddItemCommand(
            product_id=product_id,
            quantity=quantity,
            variant=_variant(payload.get("variant")),
            specifications=specifications_from_raw(payload.get("selectedSpecifications")),
            colors=colors_from_raw(payload.get("selectedColors")),
        )


@dataclass
class UpdateItemCommand:
    """``None`` for variant/specifications/colors means "keep what the line has"."""

    product_id: int
    quantity: int
    variant: Optional[str] = None
    specifications: Optional[List[SelectedSpecification]] = None
    colors: Optional[List[str]] = None

    @staticmethod
    def from_raw(product_id: Any, payload: Dict[str, Any]) -> "UpdateItemCommand":
        if not isinstance(payload, dict):
            raise CartValidationError("Payload must be an object", "يجب أن تكون البيانات كائنًا")
        try:
            pid = int(product_id)
        except (ValueError, TypeError):
            pid = 0
        quantity = _quantity(payload.get("quantity"))
        if not pid:
            raise CartValidationError("Product is required", "المنتج مطلوب")
        if quantity is None or quantity < 0:
            raise CartValidationError(
                "Quantity must be 0 or greater",
                "يجب أن تكون الكمية 0 أو أكثر",
                details={"quantity": payload.get("quantity")},
            )
        specifications = None
        if "selectedSpecifications" in payload:
            specifications = specifications_from_raw(payload.get("selectedSpecifications"))
        colors = None
        if "selectedColors" in payload:
            colors = colors_from_raw(payload.get("selectedColors"))
        return UpdateItemCommand(
            product_id=pid,
            quantity=quantity,
            variant=_variant(payload.get("variant")),
            specifications=specifications,
            colors=colors,
        )
