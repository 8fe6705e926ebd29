from typing import Dict, Iterable, Optional

from apps.common.repository import GenericRepository

from .dtos import ProductSnapshot, SpecificationRecord
from .mappers import ProductSnapshotMapper, SpecificationRecordMapper
from .models import Product, ProductSpecification, Store


class StoreRepository(GenericRepository[Store]):
    def __init__(self):
        super().__init__(Store)

    def is_active(self, store_id: int) -> bool:
        return self.model.objects.filter(id=store_id, is_active=True).exists()


class ProductRepository(GenericRepository[Product]):
    def __init__(self):
        super().__init__(Product)

    def find_active(self, product_id: int, store_id: int) -> Optional[ProductSnapshot]:
        """Snapshot of the product scoped to the store.

        Inactive products are still returned (with ``is_active=False``) so callers
        can tell "deactivated" apart from "does not exist in this store".
        """
        product = self.model.objects.filter(id=product_id, store_id=store_id).first()
        return ProductSnapshotMapper.to_snapshot(product) if product else None


class SpecificationRepository(GenericRepository[ProductSpecification]):
    def __init__(self):
        super().__init__(ProductSpecification)

    def find_batch(self, specification_ids: Iterable[str]) -> Dict[str, SpecificationRecord]:
        numeric_ids = {int(sid) for sid in specification_ids if str(sid).isdigit()}
        if not numeric_ids:
            return {}
        records = (
            SpecificationRecordMapper.to_record(spec)
            for spec in self.model.objects.filter(id__in=numeric_ids)
        )
        return {record.id: record for record in records}
