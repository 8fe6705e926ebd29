import unittest
from decimal import Decimal

from apps.carts.pricing import (
    FlatRateTaxPolicy,
    TotalsCalculator,
    current_price,
    quantize_money,
)
from apps.catalog.dtos import ProductSnapshot


def product(price="100.00", on_sale=False, percentage="0", product_id=1):
    return ProductSnapshot(
        id=product_id,
        store_id=1,
        title="Lamp",
        price=Decimal(price),
        stock=10,
        is_on_sale=on_sale,
        sale_percentage=Decimal(percentage),
    )


class PricingTests(unittest.TestCase):
    def test_current_price(self):
        self.assertEqual(current_price(product(on_sale=True, percentage="20")), Decimal("80"))
        # a sale flag without a percentage keeps list price
        self.assertEqual(current_price(product(on_sale=True)), Decimal("100.00"))
        self.assertEqual(current_price(product(percentage="20")), Decimal("100.00"))

    def test_totals_for_discounted_line(self):
        calc = TotalsCalculator(FlatRateTaxPolicy(Decimal("0.10")))
        totals = calc.totals([(product(on_sale=True, percentage="20"), 2)])
        line = totals.items[0]
        self.assertEqual(line.item_total, Decimal("160"))
        self.assertEqual(line.item_discount, Decimal("40"))
        self.assertEqual(totals.subtotal, Decimal("160"))
        self.assertEqual(totals.total_discount, Decimal("40"))
        self.assertEqual(totals.tax, Decimal("16"))
        self.assertEqual(totals.total, Decimal("176"))
        self.assertEqual(totals.items_count, 2)

    def test_tax_rate_is_injectable(self):
        calc = TotalsCalculator(FlatRateTaxPolicy(Decimal("0.05")))
        totals = calc.totals([(product(price="10.00"), 3), (product(price="5.50", product_id=2), 1)])
        self.assertEqual(totals.subtotal, Decimal("35.50"))
        self.assertEqual(quantize_money(totals.tax), Decimal("1.78"))
        self.assertEqual(totals.tax_rate, Decimal("0.05"))

    def test_empty_cart(self):
        totals = TotalsCalculator(FlatRateTaxPolicy(Decimal("0.10"))).totals([])
        self.assertEqual(totals.total, Decimal("0"))
        self.assertEqual(totals.items, [])

    def test_negative_rate_rejected(self):
        with self.assertRaises(ValueError):
            FlatRateTaxPolicy(Decimal("-0.01"))
