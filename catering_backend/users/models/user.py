"""
PATH: users/models/user.py

CUSTOM USER MODEL

Staff accounts for the catering back office.

Rules:
- Email is the canonical login identity.
- role is the employee job role; capabilities are derived from it
  (see permissions/roles.py), views never check raw roles.
- waiter/driver are view-only roles: they can browse but never sell or
  operate the cash register.
"""

from __future__ import annotations

import uuid

from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.db import models


# ---------------- USER MANAGER ----------------
class UserManager(BaseUserManager):
    def create_user(self, email=None, password=None, **extra_fields):
        """
        Backward-compatible creation supporting:
        - create_user(email="a@b.com", password="x", role="cashier")
        - create_user(username="kasir1", password="x")   (email becomes kasir1@local.test)
        """
        username = (extra_fields.pop("username", "") or "").strip()

        if not email:
            if username:
                email = f"{username.lower()}@local.test"
            else:
                raise ValueError("An email address is required (or provide username=...)")

        email = self.normalize_email(email)
        extra_fields.setdefault("is_active", True)

        user = self.model(email=email, **extra_fields)

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        if not password:
            raise ValueError("Superuser must have a password")

        extra_fields.setdefault("role", User.ROLE_ADMIN)
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("is_active", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True")

        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True")

        return self.create_user(email=email, password=password, **extra_fields)


# ---------------- USER MODEL ----------------
class User(AbstractBaseUser, PermissionsMixin):
    ROLE_ADMIN = "admin"
    ROLE_MANAGER = "manager"
    ROLE_CASHIER = "cashier"
    ROLE_PRODUCTION = "production"
    ROLE_ACCOUNTING = "accounting"
    ROLE_WAITER = "waiter"
    ROLE_DRIVER = "driver"

    ROLE_CHOICES = [
        (ROLE_ADMIN, "Admin"),
        (ROLE_MANAGER, "Manager"),
        (ROLE_CASHIER, "Cashier"),
        (ROLE_PRODUCTION, "Production"),
        (ROLE_ACCOUNTING, "Accounting"),
        (ROLE_WAITER, "Waiter"),
        (ROLE_DRIVER, "Driver"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)

    first_name = models.CharField(max_length=100, blank=True)
    last_name = models.CharField(max_length=100, blank=True)

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_CASHIER)

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    class Meta:
        ordering = ["-created_at"]

    @property
    def display_name(self) -> str:
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.email

    def __str__(self):
        return f"{self.email} ({self.role})"
