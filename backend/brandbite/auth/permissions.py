from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Mapping

from brandbite.core.roles import CompanyRole, normalize_role

ROLE_OWNER = CompanyRole.OWNER.value
ROLE_PM = CompanyRole.PM.value
ROLE_BILLING = CompanyRole.BILLING.value
ROLE_MEMBER = CompanyRole.MEMBER.value


@dataclass(frozen=True)
class Permission:
    # board.*
    BOARD_READ: str = "board.read"
    BOARD_MOVE: str = "board.move"

    # tickets.*
    TICKETS_CREATE: str = "tickets.create"
    TICKETS_COMMENT: str = "tickets.comment"

    # projects.*
    PROJECTS_READ: str = "projects.read"
    PROJECTS_MANAGE: str = "projects.manage"

    # members.*
    MEMBERS_READ: str = "members.read"

    # billing.*
    BILLING_READ: str = "billing.read"

    # settings.*
    SETTINGS_READ: str = "settings.read"

    # wildcards (domain-level)
    BOARD_ALL: str = "board.*"
    TICKETS_ALL: str = "tickets.*"
    PROJECTS_ALL: str = "projects.*"
    MEMBERS_ALL: str = "members.*"
    BILLING_ALL: str = "billing.*"
    SETTINGS_ALL: str = "settings.*"


PERM = Permission()

ROLE_BASE_PERMISSIONS: Mapping[str, FrozenSet[str]] = {
    ROLE_PM: frozenset(
        {
            PERM.BOARD_ALL,
            PERM.TICKETS_ALL,
            PERM.PROJECTS_ALL,
            PERM.MEMBERS_READ,
            PERM.SETTINGS_READ,
            PERM.BILLING_READ,
        }
    ),
    # billing sees the board but never moves tickets
    ROLE_BILLING: frozenset(
        {
            PERM.BOARD_READ,
            PERM.BILLING_ALL,
            PERM.PROJECTS_READ,
            PERM.MEMBERS_READ,
            PERM.SETTINGS_READ,
        }
    ),
    ROLE_MEMBER: frozenset(
        {
            PERM.BOARD_READ,
            PERM.BOARD_MOVE,
            PERM.TICKETS_ALL,
            PERM.PROJECTS_READ,
            PERM.MEMBERS_READ,
        }
    ),
}


def effective_permissions(role: str | CompanyRole | None) -> FrozenSet[str]:
    """
    Base grants for a company role.
    OWNER is handled as "all" in is_permitted().
    """
    return ROLE_BASE_PERMISSIONS.get(normalize_role(role), frozenset())


def _has_domain_wildcard(grants: FrozenSet[str], required: str) -> bool:
    if required in grants:
        return True
    idx = required.find(".")
    if idx <= 0:
        return False
    domain = required[:idx]
    return f"{domain}.*" in grants


def is_permitted(*, role: str | CompanyRole | None, required: str) -> bool:
    if normalize_role(role) == ROLE_OWNER:
        return True
    return _has_domain_wildcard(effective_permissions(role), required)
