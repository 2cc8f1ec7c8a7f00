# users/management/commands/ensure_superuser.py

"""
PATH: users/management/commands/ensure_superuser.py

Bootstrap the first admin account for a fresh deployment.

- Reads AUTO_ADMIN_EMAIL + AUTO_ADMIN_PASSWORD from env.
- Idempotent: creates the admin if missing; resets password if it exists.
- Does NOT print the password.
"""

from __future__ import annotations

import os

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction


class Command(BaseCommand):
    help = "Create/update the initial admin account from env vars (idempotent)."

    def handle(self, *args, **options):
        email = (os.environ.get("AUTO_ADMIN_EMAIL") or "").strip()
        password = (os.environ.get("AUTO_ADMIN_PASSWORD") or "").strip()

        if not email or not password:
            self.stdout.write(self.style.WARNING("AUTO_ADMIN_* env vars not set. Skipping."))
            return

        User = get_user_model()

        with transaction.atomic():
            user = User.objects.filter(email__iexact=email).first()

            if user:
                user.is_active = True
                user.is_staff = True
                user.is_superuser = True
                user.role = User.ROLE_ADMIN
                user.set_password(password)
                user.save()
                self.stdout.write(self.style.SUCCESS(f"Admin ensured: {email} (updated)"))
                return

            User.objects.create_superuser(email=email, password=password)
            self.stdout.write(self.style.SUCCESS(f"Admin ensured: {email} (created)"))
