# users/tests/test_roles.py

from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient, APIRequestFactory

from permissions.roles import (
    ALL_CAPABILITIES,
    CAP_POS_SELL,
    CAP_POS_VIEW,
    CAP_REGISTER_CLOSE_ANY,
    CAP_REGISTER_OPERATE,
    HasCapability,
    effective_capabilities_for,
    has_capability,
    is_view_only,
)

User = get_user_model()


class _View:
    required_capability = None
    required_capabilities_by_method = None


class CapabilityTests(TestCase):
    """
    GUARANTEES:
    - Cashiers may sell and operate their own drawer
    - Waiters / drivers are view-only
    - Only admins may close someone else's drawer
    """

    def test_cashier_capabilities(self):
        cashier = User.objects.create_user(email="kasir@example.com", password="pass", role="cashier")

        self.assertTrue(has_capability(cashier, CAP_POS_SELL))
        self.assertTrue(has_capability(cashier, CAP_REGISTER_OPERATE))
        self.assertFalse(has_capability(cashier, CAP_REGISTER_CLOSE_ANY))

    def test_view_only_roles(self):
        for role in ("waiter", "driver"):
            user = User.objects.create_user(email=f"{role}@example.com", password="pass", role=role)

            self.assertTrue(is_view_only(user))
            self.assertEqual(effective_capabilities_for(user), {CAP_POS_VIEW})

    def test_admin_and_superuser_have_everything(self):
        admin = User.objects.create_user(email="admin@example.com", password="pass", role="admin")
        root = User.objects.create_superuser(email="root@example.com", password="pass", role="waiter")

        self.assertEqual(effective_capabilities_for(admin), ALL_CAPABILITIES)
        self.assertEqual(effective_capabilities_for(root), ALL_CAPABILITIES)

    def test_anonymous_has_nothing(self):
        self.assertEqual(effective_capabilities_for(AnonymousUser()), set())


class HasCapabilityPermissionTests(TestCase):
    def setUp(self):
        self.factory = APIRequestFactory()
        self.permission = HasCapability()
        self.cashier = User.objects.create_user(email="kasir@example.com", password="pass", role="cashier")
        self.waiter = User.objects.create_user(email="waiter@example.com", password="pass", role="waiter")

    def _request(self, method, user):
        request = getattr(self.factory, method.lower())("/")
        request.user = user
        request.method = method
        return request

    def test_required_capability(self):
        view = _View()
        view.required_capability = CAP_POS_SELL

        self.assertTrue(self.permission.has_permission(self._request("POST", self.cashier), view))
        self.assertFalse(self.permission.has_permission(self._request("POST", self.waiter), view))

    def test_capability_by_method(self):
        view = _View()
        view.required_capabilities_by_method = {"GET": CAP_POS_VIEW, "POST": CAP_POS_SELL}

        self.assertTrue(self.permission.has_permission(self._request("GET", self.waiter), view))
        self.assertFalse(self.permission.has_permission(self._request("POST", self.waiter), view))

    def test_view_without_capability_is_denied(self):
        self.assertFalse(self.permission.has_permission(self._request("GET", self.cashier), _View()))

    def test_anonymous_denied(self):
        view = _View()
        view.required_capability = CAP_POS_VIEW

        self.assertFalse(self.permission.has_permission(self._request("GET", AnonymousUser()), view))


class AuthApiTests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.user = User.objects.create_user(
            email="kasir@example.com",
            password="rahasia123",
            role="cashier",
            first_name="Sari",
        )

    def test_login_issues_tokens(self):
        res = self.client.post(
            "/api/auth/login/",
            {"email": "KASIR@example.com", "password": "rahasia123"},
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertIn("access", res.data)
        self.assertIn("refresh", res.data)
        self.assertEqual(res.data["user"]["display_name"], "Sari")

    def test_login_wrong_password(self):
        res = self.client.post(
            "/api/auth/login/",
            {"email": "kasir@example.com", "password": "salah"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_login_inactive_user(self):
        self.user.is_active = False
        self.user.save(update_fields=["is_active"])

        res = self.client.post(
            "/api/auth/login/",
            {"email": "kasir@example.com", "password": "rahasia123"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_me_lists_capabilities(self):
        self.client.force_authenticate(self.user)

        res = self.client.get("/api/auth/me/")

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["user"]["role"], "cashier")
        self.assertIn(CAP_POS_SELL, res.data["user"]["capabilities"])
        self.assertNotIn(CAP_REGISTER_CLOSE_ANY, res.data["user"]["capabilities"])

    def test_me_requires_auth(self):
        res = self.client.get("/api/auth/me/")
        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_jwt_access_token_authenticates(self):
        res = self.client.post(
            "/api/auth/login/",
            {"email": "kasir@example.com", "password": "rahasia123"},
            format="json",
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {res.data['access']}")

        res = self.client.get("/api/auth/me/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
