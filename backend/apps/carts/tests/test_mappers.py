import unittest
from datetime import datetime, timezone
from decimal import Decimal

from apps.carts.dtos import CartLine, SelectedSpecification
from apps.carts.mappers import CartLineMapper, CartMapper, SelectedSpecificationMapper
from apps.carts.reconciliation import ReconciledLine, ReconcileResult
from apps.catalog.dtos import ProductSnapshot, SpecificationOption, SpecificationRecord


class StubCart:
    def __init__(self, items, user_id=None, guest_id="g-1"):
        self.id = 4
        self.store_id = 2
        self.user_id = user_id
        self.guest_id = guest_id
        self.items = items
        self.version = 6


def stored_line(**overrides):
    raw = {
        "product": 11,
        "quantity": 2,
        "variant": "red",
        "priceAtAdd": "19.99",
        "selectedSpecifications": [
            {
                "specificationId": "3",
                "valueId": "v1",
                "titleAr": "مقاس",
                "titleEn": "Size",
                "valueAr": "كبير",
                "valueEn": "Large",
            }
        ],
        "selectedColors": ["red"],
        "addedAt": "2025-01-02T10:20:30+00:00",
    }
    raw.update(overrides)
    return raw


class CartLineMapperTests(unittest.TestCase):
    def test_from_storage(self):
        line = CartLineMapper.from_storage(stored_line())
        self.assertEqual(line.product_id, 11)
        self.assertEqual(line.price_at_add, Decimal("19.99"))
        self.assertEqual(line.selected_specifications[0].key, ("3", "v1"))
        self.assertEqual(line.selected_specifications[0].value_ar, "كبير")
        self.assertEqual(line.added_at, datetime(2025, 1, 2, 10, 20, 30, tzinfo=timezone.utc))

    def test_to_storage_matches_stored_shape(self):
        line = CartLineMapper.from_storage(stored_line())
        self.assertEqual(CartLineMapper.to_storage(line), stored_line())

    def test_unreadable_entries(self):
        self.assertIsNone(CartLineMapper.from_storage("11:2"))
        self.assertIsNone(CartLineMapper.from_storage(stored_line(product=None)))
        self.assertIsNone(CartLineMapper.from_storage(stored_line(priceAtAdd="abc")))
        line = CartLineMapper.from_storage(
            stored_line(selectedSpecifications=[{"specificationId": "3"}], addedAt=None)
        )
        self.assertEqual(line.selected_specifications, [])
        self.assertIsNone(line.added_at)


class SelectedSpecificationMapperTests(unittest.TestCase):
    def test_enrich_prefers_catalog_text(self):
        record = SpecificationRecord(
            id="3",
            title_ar="المقاس",
            title_en="Size",
            values=[SpecificationOption("v1", "كبير جدا", "")],
        )
        spec = SelectedSpecification("3", "v1", "قديم", "Old", "قديم", "Large")
        enriched = SelectedSpecificationMapper.enrich(spec, {"3": record})
        self.assertEqual(enriched.title_ar, "المقاس")
        self.assertEqual(enriched.value_ar, "كبير جدا")
        # blank catalog text keeps the cached value
        self.assertEqual(enriched.value_en, "Large")

    def test_enrich_without_record_keeps_cache(self):
        spec = SelectedSpecification("3", "v1", title_en="Size")
        self.assertIs(SelectedSpecificationMapper.enrich(spec, {}), spec)


class CartMapperTests(unittest.TestCase):
    def test_to_state_discards_unreadable_lines(self):
        cart = StubCart([stored_line(), {"product": "x"}, stored_line(product=12)])
        state = CartMapper().to_state(cart)
        self.assertEqual([l.product_id for l in state.lines], [11, 12])
        self.assertEqual(state.version, 6)
        self.assertTrue(state.owner.is_guest)
        self.assertEqual(state.owner.guest_id, "g-1")

    def test_to_state_user_cart(self):
        state = CartMapper().to_state(StubCart([], user_id=9, guest_id=None))
        self.assertEqual(state.owner.user_id, 9)
        self.assertIsNone(state.owner.guest_id)

    def test_to_dto(self):
        mapper = CartMapper()
        state = mapper.to_state(StubCart([stored_line()]))
        product = ProductSnapshot(
            id=11,
            store_id=2,
            title="Shirt",
            price=Decimal("25.00"),
            stock=3,
            compare_at_price=Decimal("30.00"),
        )
        reconciled = ReconcileResult(
            lines=[ReconciledLine(state.lines[0], product, 3)], removed_count=1
        )
        dto = mapper.to_dto(state, reconciled, {})
        self.assertEqual(dto.store_id, 2)
        self.assertEqual(dto.items_count, 2)
        self.assertEqual(dto.removed_count, 1)
        item = dto.items[0]
        self.assertEqual(item.title, "Shirt")
        self.assertEqual(item.price_at_add, Decimal("19.99"))
        self.assertEqual(item.current_price, Decimal("25.00"))
        self.assertEqual(item.available_stock, 3)
