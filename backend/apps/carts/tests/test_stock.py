import unittest
from decimal import Decimal

from apps.carts.dtos import SelectedSpecification
from apps.carts.exceptions import SpecificationMismatchError
from apps.carts.stock import available_stock, resolve_selections
from apps.catalog.dtos import ProductSnapshot, SpecificationValueSnapshot


def product(stock=7, values=()):
    return ProductSnapshot(
        id=1,
        store_id=1,
        title="Shirt",
        price=Decimal("10"),
        stock=stock,
        specification_values=[
            SpecificationValueSnapshot(
                specification_id=s, value_id=v, value=text, quantity=q
            )
            for s, v, text, q in values
        ],
    )


SHIRT = product(
    values=[
        ("size", "size-m", "Medium", 4),
        ("size", "size-l", "Large", 2),
        ("color", "c-red", "Red", 3),
    ]
)


class AvailableStockTests(unittest.TestCase):
    def test_no_selections_uses_product_stock(self):
        self.assertEqual(available_stock(SHIRT, []), 7)

    def test_minimum_across_selected_options(self):
        selections = [
            SelectedSpecification("size", "size-m"),
            SelectedSpecification("color", "c-red"),
        ]
        self.assertEqual(available_stock(SHIRT, selections), 3)

    def test_case_insensitive_ids(self):
        self.assertEqual(available_stock(SHIRT, [SelectedSpecification(" SIZE ", "Size-L")]), 2)

    def test_matches_value_text(self):
        by_id_text = SelectedSpecification("size", "large")
        by_display = SelectedSpecification("size", "x", value_en="Medium")
        self.assertEqual(available_stock(SHIRT, [by_id_text]), 2)
        self.assertEqual(available_stock(SHIRT, [by_display]), 4)

    def test_prefixed_value_id_falls_back_to_first_value(self):
        resolved = resolve_selections(SHIRT, [SelectedSpecification("size", "size_broken")])
        self.assertEqual(resolved[0][1].value_id, "size-m")

    def test_unresolvable_selection(self):
        with self.assertRaises(SpecificationMismatchError) as ctx:
            available_stock(SHIRT, [SelectedSpecification("fabric", "cotton")])
        self.assertEqual(ctx.exception.details["specificationId"], "fabric")
        with self.assertRaises(SpecificationMismatchError):
            available_stock(SHIRT, [SelectedSpecification("size", "huge")])

    def test_never_negative(self):
        self.assertEqual(available_stock(product(stock=-3), []), 0)
        broken = product(values=[("size", "m", "", -1)])
        self.assertEqual(available_stock(broken, [SelectedSpecification("size", "m")]), 0)
