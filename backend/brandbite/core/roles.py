# brandbite/core/roles.py

import enum


class UserRole(str, enum.Enum):
    SITE_OWNER = "SITE_OWNER"
    SITE_ADMIN = "SITE_ADMIN"
    CUSTOMER = "CUSTOMER"
    DESIGNER = "DESIGNER"  # shown as "Creative"


class CompanyRole(str, enum.Enum):
    OWNER = "OWNER"      # company creator
    PM = "PM"            # runs projects and tickets
    BILLING = "BILLING"  # plan / tokens, read-only on the board
    MEMBER = "MEMBER"


SITE_ADMIN_ROLES = frozenset({UserRole.SITE_OWNER, UserRole.SITE_ADMIN})


def normalize_role(role) -> str:
    v = getattr(role, "value", role)
    return (v or "").strip().upper()


def is_site_admin_role(role) -> bool:
    return normalize_role(role) in {r.value for r in SITE_ADMIN_ROLES}


def is_creative_role(role) -> bool:
    return normalize_role(role) == UserRole.DESIGNER.value


def is_customer_role(role) -> bool:
    return normalize_role(role) == UserRole.CUSTOMER.value


def format_role(role) -> str:
    return {
        UserRole.SITE_OWNER.value: "Site owner",
        UserRole.SITE_ADMIN.value: "Site admin",
        UserRole.DESIGNER.value: "Creative",
        UserRole.CUSTOMER.value: "Customer",
    }.get(normalize_role(role), str(role))
