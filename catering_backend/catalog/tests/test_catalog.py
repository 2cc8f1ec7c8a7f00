# catalog/tests/test_catalog.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APIClient

from catalog.models import Customer, MenuItem
from catalog.services.customers import (
    ensure_pos_customer,
    resolve_customer,
    resolve_pos_customer,
)

User = get_user_model()


class MenuListTests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.cashier = User.objects.create_user(
            email="kasir@example.com",
            password="pass",
            role="cashier",
        )
        self.client.force_authenticate(self.cashier)

        MenuItem.objects.create(name="Nasi Box Ayam", description="Ayam bakar", price=Decimal("25000.00"))
        MenuItem.objects.create(name="Tumpeng Mini", description="Nasi kuning", price=Decimal("150000.00"))
        MenuItem.objects.create(name="Es Teh", price=Decimal("5000.00"), is_active=False)

    def test_lists_only_active_menus(self):
        res = self.client.get("/api/catalog/menus/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)

        names = [row["name"] for row in res.data["results"]]
        self.assertEqual(names, ["Nasi Box Ayam", "Tumpeng Mini"])

    def test_search_matches_name_and_description(self):
        res = self.client.get("/api/catalog/menus/", {"search": "kuning"})
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual([row["name"] for row in res.data["results"]], ["Tumpeng Mini"])

        res = self.client.get("/api/catalog/menus/", {"search": "ayam"})
        self.assertEqual([row["name"] for row in res.data["results"]], ["Nasi Box Ayam"])

    def test_view_only_role_can_browse(self):
        waiter = User.objects.create_user(email="waiter@example.com", password="pass", role="waiter")
        self.client.force_authenticate(waiter)

        res = self.client.get("/api/catalog/menus/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)

    def test_anonymous_denied(self):
        self.client.force_authenticate(None)
        res = self.client.get("/api/catalog/menus/")
        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)


class PosCustomerTests(TestCase):
    def test_resolve_returns_none_until_created(self):
        self.assertIsNone(resolve_pos_customer())

        customer, created = ensure_pos_customer()
        self.assertTrue(created)
        self.assertEqual(customer.name, "Customer PoS")
        self.assertEqual(resolve_pos_customer(), customer)

    def test_ensure_is_idempotent(self):
        first, _ = ensure_pos_customer()
        second, created = ensure_pos_customer()

        self.assertFalse(created)
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(Customer.objects.count(), 1)

    @override_settings(POS_CUSTOMER_NAME="Walk In")
    def test_name_follows_settings(self):
        call_command("ensure_pos_customer", verbosity=0)
        self.assertTrue(Customer.objects.filter(name="Walk In").exists())

    def test_explicit_selection_wins_over_walk_in(self):
        walk_in, _ = ensure_pos_customer()
        corporate = Customer.objects.create(name="PT Sinar", type=Customer.TYPE_COMPANY)

        self.assertEqual(resolve_customer(corporate.id), corporate)
        self.assertEqual(resolve_customer(None), walk_in)

    def test_inactive_selection_falls_back_to_walk_in(self):
        walk_in, _ = ensure_pos_customer()
        gone = Customer.objects.create(name="Old Client", is_active=False)

        self.assertEqual(resolve_customer(gone.id), walk_in)
