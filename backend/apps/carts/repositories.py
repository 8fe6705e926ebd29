from typing import Any, Dict, List, Optional

from django.utils import timezone

from apps.common.repository import GenericRepository

from .dtos import CartOwner
from .models import Cart


class CartRepository(GenericRepository[Cart]):
    def __init__(self):
        super().__init__(Cart)

    @staticmethod
    def _owner_filters(owner: CartOwner) -> Dict[str, Any]:
        if owner.user_id is not None:
            return {"store_id": owner.store_id, "user_id": owner.user_id}
        return {"store_id": owner.store_id, "guest_id": owner.guest_id}

    def get_for_owner(self, owner: CartOwner) -> Optional[Cart]:
        return self.get(**self._owner_filters(owner))

    def create_for_owner(self, owner: CartOwner) -> Cart:
        return self.create(**self._owner_filters(owner), items=[], version=0)

    def save_items(
        self, cart_id: int, items: List[Dict[str, Any]], expected_version: int
    ) -> bool:
        return self.compare_and_set(
            cart_id,
            {"version": expected_version},
            items=items,
            version=expected_version + 1,
            updated_at=timezone.now(),
        )

    def delete_if_version(self, cart_id: int, expected_version: int) -> bool:
        deleted, _ = self.model.objects.filter(
            pk=cart_id, version=expected_version
        ).delete()
        return deleted > 0
