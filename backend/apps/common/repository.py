from typing import Any, Generic, Optional, Type, TypeVar

from django.db import models

T = TypeVar('T', bound=models.Model)


class GenericRepository(Generic[T]):
    def __init__(self, model: Type[T]):
        self.model = model

    def get(self, **filters) -> Optional[T]:
        return self.model.objects.filter(**filters).first()

    def create(self, **data) -> T:
        return self.model.objects.create(**data)

    def compare_and_set(self, pk: Any, guard: dict, **values) -> bool:
        """Update the row only if it still matches ``guard``; True when a row changed."""
        updated = self.model.objects.filter(pk=pk, **guard).update(**values)
        return updated == 1
