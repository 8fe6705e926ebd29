from django.conf import settings
from django.db import models
from django.db.models import Q

from apps.catalog.models import Store


class Cart(models.Model):
    """Owner-and-store scoped cart; lines live embedded in ``items``.

    Exactly one of ``user``/``guest_id`` is set. ``version`` is bumped on every
    write and guards the compare-and-set in ``CartRepository.save_items``.
    """

    store = models.ForeignKey(Store, on_delete=models.CASCADE, related_name="carts")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="carts",
        null=True,
        blank=True,
    )
    guest_id = models.CharField(max_length=64, null=True, blank=True)
    items = models.JSONField(default=list, blank=True)
    version = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "carts"
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(user__isnull=False, guest_id__isnull=True)
                    | Q(user__isnull=True, guest_id__isnull=False)
                ),
                name="cart_exactly_one_owner",
            ),
            models.UniqueConstraint(
                fields=["store", "user"],
                condition=Q(user__isnull=False),
                name="cart_unique_store_user",
            ),
            models.UniqueConstraint(
                fields=["store", "guest_id"],
                condition=Q(guest_id__isnull=False),
                name="cart_unique_store_guest",
            ),
        ]

    def __str__(self):
        owner = f"user {self.user_id}" if self.user_id else f"guest {self.guest_id}"
        return f"Cart {self.id} for {owner} in store {self.store_id}"
