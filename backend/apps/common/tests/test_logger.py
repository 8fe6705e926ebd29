import logging
import unittest
from decimal import Decimal

from apps.common.logger import AppLogger, get_logger


class AppLoggerTests(unittest.TestCase):
    def test_bind_merges_context_without_mutating_parent(self):
        base = get_logger("apps.carts.test").bind(component="carts")
        child = base.bind(service="CartService")
        self.assertEqual(base.context, {"component": "carts"})
        self.assertEqual(child.context, {"component": "carts", "service": "CartService"})

    def test_format_skips_none_values(self):
        rendered = AppLogger._format(
            "Cart item added", {"cart_id": 3, "guest_id": None, "total": Decimal("17.60")}
        )
        self.assertEqual(rendered, "Cart item added | cart_id=3 total=17.60")

    def test_sequences_are_joined(self):
        self.assertEqual(AppLogger._stringify(["S", 4]), "S,4")

    def test_records_are_emitted_with_context(self):
        log = get_logger("apps.carts.test.emit").bind(component="carts")
        with self.assertLogs("apps.carts.test.emit", level=logging.INFO) as captured:
            log.info("Cart created", cart_id=9)
            log.debug("hidden")
        self.assertEqual(len(captured.records), 1)
        self.assertEqual(
            captured.records[0].getMessage(), "Cart created | component=carts cart_id=9"
        )
