"""Role definitions, hierarchy, and permission grants.

The role table is fixed at import time. Every lookup goes through the
functions below, so an unknown role string always resolves to "no
permissions" and a level below every real role.
"""

import enum
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional


class Role(str, enum.Enum):
    admin = "admin"
    manager = "manager"
    agent = "agent"
    employee = "employee"


class Permission(str, enum.Enum):
    # Assets
    ASSETS_VIEW_ALL = "assets:view:all"
    ASSETS_VIEW_OWN = "assets:view:own"
    ASSETS_VIEW_SUBORDINATES = "assets:view:subordinates"
    ASSETS_CREATE = "assets:create"
    ASSETS_UPDATE = "assets:update"
    ASSETS_DELETE = "assets:delete"
    ASSETS_ASSIGN = "assets:assign"

    # Users
    USERS_VIEW_ALL = "users:view:all"
    USERS_VIEW_SUBORDINATES = "users:view:subordinates"
    USERS_CREATE = "users:create"
    USERS_UPDATE = "users:update"
    USERS_DELETE = "users:delete"
    USERS_EDIT_ROLES = "users:edit_roles"

    # Employees
    EMPLOYEES_VIEW_ALL = "employees:view:all"
    EMPLOYEES_VIEW_SUBORDINATES = "employees:view:subordinates"
    EMPLOYEES_CREATE = "employees:create"
    EMPLOYEES_UPDATE = "employees:update"
    EMPLOYEES_DELETE = "employees:delete"

    # Tickets
    TICKETS_VIEW_ALL = "tickets:view:all"
    TICKETS_VIEW_OWN = "tickets:view:own"
    TICKETS_VIEW_SUBORDINATES = "tickets:view:subordinates"
    TICKETS_CREATE = "tickets:create"
    TICKETS_UPDATE = "tickets:update"
    TICKETS_DELETE = "tickets:delete"
    TICKETS_ASSIGN = "tickets:assign"
    TICKETS_CLOSE = "tickets:close"

    # System
    SYSTEM_CONFIG = "system:config"
    SYSTEM_LOGS = "system:logs"
    SYSTEM_HEALTH = "system:health"
    SYSTEM_BACKUP = "system:backup"

    # Reports, audit, maintenance, notifications
    REPORTS_VIEW = "reports:view"
    REPORTS_EXPORT = "reports:export"
    AUDIT_LOGS = "audit:logs"
    MAINTENANCE_VIEW = "maintenance:view"
    MAINTENANCE_SCHEDULE = "maintenance:schedule"
    NOTIFICATIONS_MANAGE = "notifications:manage"


UNKNOWN_ROLE_LEVEL = 0

# Identifiers older data may still carry.
ROLE_ALIASES = MappingProxyType({"super_admin": Role.admin.value})


@dataclass(frozen=True)
class RoleDefinition:
    """Static description of one role."""

    role: Role
    level: int
    display_name: Mapping[str, str]
    permissions: frozenset

    @property
    def id(self) -> str:
        return self.role.value


def _grants(*permissions: Permission) -> frozenset:
    return frozenset(p.value for p in permissions)


_EMPLOYEE_GRANTS = _grants(
    Permission.ASSETS_VIEW_OWN,
    Permission.TICKETS_VIEW_OWN,
    Permission.TICKETS_CREATE,
    Permission.MAINTENANCE_VIEW,
)

_AGENT_GRANTS = _grants(
    Permission.ASSETS_VIEW_ALL,
    Permission.ASSETS_VIEW_OWN,
    Permission.ASSETS_ASSIGN,
    Permission.EMPLOYEES_VIEW_ALL,
    Permission.TICKETS_VIEW_ALL,
    Permission.TICKETS_VIEW_OWN,
    Permission.TICKETS_CREATE,
    Permission.TICKETS_UPDATE,
    Permission.TICKETS_ASSIGN,
    Permission.TICKETS_CLOSE,
    Permission.REPORTS_VIEW,
    Permission.REPORTS_EXPORT,
    Permission.MAINTENANCE_VIEW,
    Permission.MAINTENANCE_SCHEDULE,
)

_MANAGER_GRANTS = _grants(
    Permission.ASSETS_VIEW_ALL,
    Permission.ASSETS_VIEW_OWN,
    Permission.ASSETS_VIEW_SUBORDINATES,
    Permission.ASSETS_CREATE,
    Permission.ASSETS_UPDATE,
    Permission.ASSETS_DELETE,
    Permission.ASSETS_ASSIGN,
    Permission.USERS_VIEW_SUBORDINATES,
    Permission.EMPLOYEES_VIEW_SUBORDINATES,
    Permission.EMPLOYEES_UPDATE,
    Permission.TICKETS_VIEW_ALL,
    Permission.TICKETS_VIEW_OWN,
    Permission.TICKETS_VIEW_SUBORDINATES,
    Permission.TICKETS_CREATE,
    Permission.TICKETS_UPDATE,
    Permission.TICKETS_DELETE,
    Permission.TICKETS_ASSIGN,
    Permission.TICKETS_CLOSE,
    Permission.REPORTS_VIEW,
    Permission.REPORTS_EXPORT,
    Permission.AUDIT_LOGS,
    Permission.MAINTENANCE_VIEW,
    Permission.MAINTENANCE_SCHEDULE,
    Permission.NOTIFICATIONS_MANAGE,
)

# Admin holds every permission, listed explicitly like the others.
_ADMIN_GRANTS = _grants(*Permission)

ROLE_DEFINITIONS: Mapping[str, RoleDefinition] = MappingProxyType({
    Role.admin.value: RoleDefinition(
        role=Role.admin,
        level=4,
        display_name=MappingProxyType({"en": "Admin", "ar": "مشرف"}),
        permissions=_ADMIN_GRANTS,
    ),
    Role.manager.value: RoleDefinition(
        role=Role.manager,
        level=3,
        display_name=MappingProxyType({"en": "Manager", "ar": "مدير"}),
        permissions=_MANAGER_GRANTS,
    ),
    Role.agent.value: RoleDefinition(
        role=Role.agent,
        level=2,
        display_name=MappingProxyType({"en": "Agent", "ar": "وكيل"}),
        permissions=_AGENT_GRANTS,
    ),
    Role.employee.value: RoleDefinition(
        role=Role.employee,
        level=1,
        display_name=MappingProxyType({"en": "Employee", "ar": "موظف"}),
        permissions=_EMPLOYEE_GRANTS,
    ),
})


def _value(item) -> str:
    if isinstance(item, enum.Enum):
        return item.value
    return item


def normalize_role_id(role) -> str:
    """Lower-case a role string and turn spaces/hyphens into underscores."""
    if not role:
        return ""
    normalized = re.sub(r"[\s-]+", "_", str(_value(role)).strip().lower())
    return ROLE_ALIASES.get(normalized, normalized)


def get_role_definition(role) -> Optional[RoleDefinition]:
    """Return the definition for a role string, or None if unrecognized."""
    if not isinstance(role, (str, enum.Enum)):
        return None
    return ROLE_DEFINITIONS.get(normalize_role_id(role))


def is_valid_role(role) -> bool:
    return get_role_definition(role) is not None


def permissions_of(role) -> frozenset:
    """Permission ids granted to a role; empty for an unknown role."""
    definition = get_role_definition(role)
    if definition is None:
        return frozenset()
    return definition.permissions


def hierarchy_level_of(role) -> int:
    """Hierarchy level of a role; unknown roles get UNKNOWN_ROLE_LEVEL."""
    definition = get_role_definition(role)
    if definition is None:
        return UNKNOWN_ROLE_LEVEL
    return definition.level


def is_at_least_as_privileged(role, min_role) -> bool:
    """True when ``role`` ranks at or above ``min_role``.

    Every role gate compares through this function. If either side is not a
    known role the answer is False.
    """
    role_def = get_role_definition(role)
    min_def = get_role_definition(min_role)
    if role_def is None or min_def is None:
        return False
    return role_def.level >= min_def.level


def has_permission(role, permission) -> bool:
    """Whether ``role`` is granted ``permission``. Never raises."""
    permission = _value(permission)
    if not isinstance(permission, str):
        return False
    return permission in permissions_of(role)


def has_any_permission(role, permissions: Iterable) -> bool:
    return any(has_permission(role, p) for p in permissions)


def has_all_permissions(role, permissions: Iterable) -> bool:
    return all(has_permission(role, p) for p in permissions)


def get_role_display_name(role, language: str = "en") -> str:
    """Display name in ``language`` ("en" or "ar"); falls back to the input."""
    definition = get_role_definition(role)
    if definition is None:
        return str(_value(role) or "")
    return definition.display_name.get(language, definition.display_name["en"])


def role_from_display_name(name: str) -> Optional[Role]:
    """Resolve a role id or an English/Arabic display name to a Role."""
    definition = get_role_definition(name)
    if definition is not None:
        return definition.role
    if not name:
        return None
    wanted = name.strip()
    for definition in ROLE_DEFINITIONS.values():
        if definition.display_name["en"].lower() == wanted.lower():
            return definition.role
        if definition.display_name["ar"] == wanted:
            return definition.role
    return None


def get_all_roles() -> List[RoleDefinition]:
    return list(ROLE_DEFINITIONS.values())


def get_roles_by_level() -> List[RoleDefinition]:
    """All roles, most privileged first."""
    return sorted(ROLE_DEFINITIONS.values(), key=lambda d: d.level, reverse=True)


def get_accessible_roles(role) -> List[RoleDefinition]:
    """Roles at or below ``role`` in the hierarchy, most privileged first."""
    return [d for d in get_roles_by_level() if is_at_least_as_privileged(role, d.role)]


def get_minimum_role_for_permission(permission) -> Optional[Role]:
    """Least privileged role granted ``permission``, or None."""
    for definition in reversed(get_roles_by_level()):
        if has_permission(definition.role, permission):
            return definition.role
    return None
