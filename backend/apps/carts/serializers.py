from decimal import ROUND_HALF_UP

from rest_framework import serializers


def money_field(**kwargs):
    return serializers.DecimalField(
        max_digits=None, decimal_places=2, rounding=ROUND_HALF_UP, **kwargs
    )


# Input --------------------------------------------------------------------


class SpecificationInputSerializer(serializers.Serializer):
    # ``value``/``title`` are the legacy aliases older storefronts still send
    specificationId = serializers.CharField(max_length=64)
    valueId = serializers.CharField(max_length=128, required=False, allow_blank=True)
    value = serializers.CharField(max_length=255, required=False, allow_blank=True)
    title = serializers.CharField(max_length=255, required=False, allow_blank=True)
    titleAr = serializers.CharField(max_length=255, required=False, allow_blank=True)
    titleEn = serializers.CharField(max_length=255, required=False, allow_blank=True)
    valueAr = serializers.CharField(max_length=255, required=False, allow_blank=True)
    valueEn = serializers.CharField(max_length=255, required=False, allow_blank=True)

    def validate(self, attrs):
        if not (attrs.get("valueId") or attrs.get("value")):
            raise serializers.ValidationError({"valueId": "This field is required."})
        return attrs


class AddItemSerializer(serializers.Serializer):
    product = serializers.IntegerField(min_value=1, required=False)
    productId = serializers.IntegerField(min_value=1, required=False)
    quantity = serializers.IntegerField(min_value=1)
    variant = serializers.CharField(
        max_length=255, required=False, allow_blank=True, allow_null=True
    )
    selectedSpecifications = SpecificationInputSerializer(many=True, required=False)
    selectedColors = serializers.ListField(
        child=serializers.CharField(max_length=64), required=False
    )

    def validate(self, attrs):
        if attrs.get("product") is None and attrs.get("productId") is None:
            raise serializers.ValidationError({"product": "This field is required."})
        return attrs


class UpdateItemSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=0)
    variant = serializers.CharField(
        max_length=255, required=False, allow_blank=True, allow_null=True
    )
    selectedSpecifications = SpecificationInputSerializer(many=True, required=False)
    selectedColors = serializers.ListField(
        child=serializers.CharField(max_length=64), required=False
    )


class MergeSerializer(serializers.Serializer):
    guestId = serializers.CharField(max_length=64, required=False)


# Output -------------------------------------------------------------------


class SelectedSpecificationSerializer(serializers.Serializer):
    specificationId = serializers.CharField(source="specification_id")
    valueId = serializers.CharField(source="value_id")
    titleAr = serializers.CharField(source="title_ar")
    titleEn = serializers.CharField(source="title_en")
    valueAr = serializers.CharField(source="value_ar")
    valueEn = serializers.CharField(source="value_en")


class CartLineSerializer(serializers.Serializer):
    product = serializers.IntegerField(source="product_id")
    title = serializers.CharField()
    quantity = serializers.IntegerField()
    priceAtAdd = money_field(source="price_at_add")
    currentPrice = money_field(source="current_price")
    compareAtPrice = money_field(source="compare_at_price", allow_null=True)
    availableStock = serializers.IntegerField(source="available_stock")
    variant = serializers.CharField(allow_null=True)
    selectedSpecifications = SelectedSpecificationSerializer(
        source="selected_specifications", many=True
    )
    selectedColors = serializers.ListField(
        source="selected_colors", child=serializers.CharField()
    )
    addedAt = serializers.DateTimeField(source="added_at", allow_null=True)


class CartSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    storeId = serializers.IntegerField(source="store_id")
    userId = serializers.IntegerField(source="user_id", allow_null=True)
    guestId = serializers.CharField(source="guest_id", allow_null=True)
    items = CartLineSerializer(many=True)
    itemsCount = serializers.IntegerField(source="items_count")
    removedCount = serializers.IntegerField(source="removed_count")
    adjustedCount = serializers.IntegerField(source="adjusted_count")
    version = serializers.IntegerField()


class TotalsLineSerializer(serializers.Serializer):
    product = serializers.IntegerField(source="product_id")
    quantity = serializers.IntegerField()
    listPrice = money_field(source="list_price")
    currentPrice = money_field(source="current_price")
    itemTotal = money_field(source="item_total")
    itemDiscount = money_field(source="item_discount")


class TotalsSerializer(serializers.Serializer):
    items = TotalsLineSerializer(many=True)
    itemsCount = serializers.IntegerField(source="items_count")
    subtotal = money_field()
    totalDiscount = money_field(source="total_discount")
    taxRate = serializers.DecimalField(
        source="tax_rate", max_digits=None, decimal_places=4
    )
    tax = money_field()
    total = money_field()
    removedCount = serializers.IntegerField(source="removed_count")
    adjustedCount = serializers.IntegerField(source="adjusted_count")


class MergeResultSerializer(serializers.Serializer):
    mergedCount = serializers.IntegerField(source="merged_count")
    updatedCount = serializers.IntegerField(source="updated_count")
    skippedCount = serializers.IntegerField(source="skipped_count")
