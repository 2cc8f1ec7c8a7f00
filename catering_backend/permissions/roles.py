# permissions/roles.py

from __future__ import annotations

from rest_framework.permissions import BasePermission

# =========================================================
# ROLE CONSTANTS (EMPLOYEE JOB ROLES)
# =========================================================
# These describe what the staff member does, not what they may do.
ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_CASHIER = "cashier"
ROLE_PRODUCTION = "production"
ROLE_ACCOUNTING = "accounting"
ROLE_WAITER = "waiter"
ROLE_DRIVER = "driver"

STAFF_ROLES = {
    ROLE_ADMIN,
    ROLE_MANAGER,
    ROLE_CASHIER,
    ROLE_PRODUCTION,
    ROLE_ACCOUNTING,
    ROLE_WAITER,
    ROLE_DRIVER,
}

# Roles that may browse PoS data but never change it.
VIEW_ONLY_ROLES = {ROLE_WAITER, ROLE_DRIVER}


# =========================================================
# CAPABILITIES (THE REAL PERMISSION LANGUAGE)
# =========================================================
# Views protect capabilities, not raw roles.
CAP_POS_VIEW = "pos.view"
CAP_POS_SELL = "pos.sell"

CAP_REGISTER_OPERATE = "register.operate"      # open/close own drawer
CAP_REGISTER_CLOSE_ANY = "register.close_any"  # close someone else's drawer

CAP_GATEWAY_CHARGE = "gateway.charge"

ALL_CAPABILITIES = {
    CAP_POS_VIEW,
    CAP_POS_SELL,
    CAP_REGISTER_OPERATE,
    CAP_REGISTER_CLOSE_ANY,
    CAP_GATEWAY_CHARGE,
}


# =========================================================
# ROLE → CAPABILITY MAP (DEFAULT)
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_ADMIN: {
        *ALL_CAPABILITIES,
    },
    ROLE_MANAGER: {
        CAP_POS_VIEW,
        CAP_POS_SELL,
        CAP_REGISTER_OPERATE,
        CAP_GATEWAY_CHARGE,
    },
    ROLE_CASHIER: {
        CAP_POS_VIEW,
        CAP_POS_SELL,
        CAP_REGISTER_OPERATE,
        CAP_GATEWAY_CHARGE,
    },
    ROLE_PRODUCTION: {CAP_POS_VIEW},
    ROLE_ACCOUNTING: {CAP_POS_VIEW},
    ROLE_WAITER: {CAP_POS_VIEW},
    ROLE_DRIVER: {CAP_POS_VIEW},
}


# =========================================================
# Helpers
# =========================================================
def get_user_role(user) -> str | None:
    return getattr(user, "role", None)


def is_view_only(user) -> bool:
    return get_user_role(user) in VIEW_ONLY_ROLES


def effective_capabilities_for(user) -> set[str]:
    if not user or not getattr(user, "is_authenticated", False):
        return set()

    caps = set(ROLE_CAPABILITIES.get(get_user_role(user), set()))

    # Superusers created through the admin keep full access even without a role.
    if getattr(user, "is_superuser", False):
        caps |= ALL_CAPABILITIES

    return caps


def has_capability(user, capability: str) -> bool:
    return capability in effective_capabilities_for(user)


# =========================================================
# Capability Permissions
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        required_capability = CAP_POS_SELL

    Views with mixed read/write methods may set required_capabilities_by_method
    instead, e.g. {"GET": CAP_POS_VIEW, "POST": CAP_POS_SELL}.
    """

    message = "Your role can only view data and cannot perform this action."

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        by_method = getattr(view, "required_capabilities_by_method", None) or {}
        required = by_method.get(request.method) or getattr(view, "required_capability", None)
        if not required:
            # Deny-by-default to avoid accidental open endpoints
            return False

        return has_capability(user, required)
