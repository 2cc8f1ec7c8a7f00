# pos/tests/test_cart.py

"""
CART ENGINE TESTS

Pure unit tests; no database.
"""

from decimal import Decimal

from django.test import SimpleTestCase

from pos.services.cart import Cart, CartLineNotFound, MenuSnapshot

NASI_BOX = MenuSnapshot(menu_id="m-1", name="Nasi Box Ayam", unit_price=Decimal("25000.00"))
ES_TEH = MenuSnapshot(menu_id="m-2", name="Es Teh", unit_price=Decimal("5000.00"))
TUMPENG = MenuSnapshot(menu_id="m-3", name="Tumpeng Mini", unit_price=Decimal("150000.00"))


class CartEngineTests(SimpleTestCase):
    def test_adding_same_menu_increments_single_line(self):
        cart = Cart()
        first = cart.add_item(NASI_BOX)
        second = cart.add_item(NASI_BOX)

        self.assertEqual(first.line_id, second.line_id)
        self.assertEqual(len(cart.lines), 1)
        self.assertEqual(cart.lines[0].quantity, 2)

    def test_quantity_never_drops_below_one(self):
        cart = Cart()
        line = cart.add_item(ES_TEH)

        cart.change_quantity(line.line_id, -1)
        cart.change_quantity(line.line_id, -5)

        self.assertEqual(cart.lines[0].quantity, 1)
        self.assertFalse(cart.is_empty)

    def test_any_sequence_keeps_invariant(self):
        cart = Cart()
        a = cart.add_item(NASI_BOX)
        b = cart.add_item(ES_TEH)

        for delta in (3, -10, 2, -1, -1, 7, -100):
            cart.change_quantity(a.line_id, delta)
            cart.change_quantity(b.line_id, -delta)
            for line in cart.lines:
                self.assertGreaterEqual(line.quantity, 1)

    def test_change_quantity_unknown_line(self):
        cart = Cart()
        with self.assertRaises(CartLineNotFound):
            cart.change_quantity("missing", 1)

    def test_remove_drops_line_and_unknown_is_noop(self):
        cart = Cart()
        line = cart.add_item(NASI_BOX)
        cart.add_item(ES_TEH)

        cart.remove_item(line.line_id)
        cart.remove_item("missing")

        self.assertEqual([line.item.menu_id for line in cart.lines], ["m-2"])

    def test_subtotal_is_sum_of_price_times_quantity(self):
        cart = Cart()
        cart.add_item(NASI_BOX)
        cart.add_item(NASI_BOX)
        cart.add_item(ES_TEH)
        cart.add_item(ES_TEH)
        cart.add_item(ES_TEH)

        # 2 x 25.000 + 3 x 5.000
        self.assertEqual(cart.subtotal(), Decimal("65000.00"))
        self.assertEqual(cart.total(), cart.subtotal())
        self.assertEqual(cart.item_count, 5)

    def test_empty_cart(self):
        cart = Cart()
        self.assertTrue(cart.is_empty)
        self.assertEqual(cart.subtotal(), Decimal("0.00"))
        self.assertEqual(cart.item_count, 0)

    def test_clear(self):
        cart = Cart()
        cart.add_item(TUMPENG)
        cart.clear()
        self.assertTrue(cart.is_empty)

    def test_dict_roundtrip_keeps_lines(self):
        cart = Cart()
        line = cart.add_item(TUMPENG)
        cart.change_quantity(line.line_id, 2)

        restored = Cart.from_dict(cart.to_dict())

        self.assertEqual(restored.lines[0].line_id, line.line_id)
        self.assertEqual(restored.lines[0].quantity, 3)
        self.assertEqual(restored.subtotal(), Decimal("450000.00"))
