from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class Store(models.Model):
    name = models.CharField(max_length=150)
    slug = models.SlugField(max_length=150, unique=True)
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return self.slug


class ProductSpecification(models.Model):
    """Store-level specification (e.g. "Size") with its selectable values.

    ``values`` holds ``[{"valueId", "valueAr", "valueEn"}]``.
    """

    store = models.ForeignKey(
        Store, on_delete=models.CASCADE, related_name="specifications"
    )
    title_ar = models.CharField(max_length=100)
    title_en = models.CharField(max_length=100)
    values = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)
    sort_order = models.IntegerField(default=0)

    class Meta:
        db_table = "product_specifications"
        indexes = [
            models.Index(fields=["store"], name="spec_store_idx"),
        ]

    def __str__(self):
        return self.title_en


class Product(models.Model):
    store = models.ForeignKey(Store, on_delete=models.CASCADE, related_name="products")
    title = models.CharField(max_length=255)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    compare_at_price = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )
    is_on_sale = models.BooleanField(default=False)
    sale_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    stock = models.IntegerField(default=0, validators=[MinValueValidator(0)])
    is_active = models.BooleanField(default=True)
    # [{"specificationId", "valueId", "value", "title", "quantity"}]
    specification_values = models.JSONField(default=list, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["store"], name="product_store_idx"),
            models.Index(fields=["store", "is_active"], name="product_store_active_idx"),
        ]

    def __str__(self):
        return self.title
