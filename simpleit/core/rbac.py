"""Resource-level access decisions and list filtering."""

import enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Collection, Mapping, Optional, Sequence

from simpleit.core.roles import Role, get_role_definition


@dataclass(frozen=True)
class Principal:
    """The authenticated user for one request."""

    id: int
    username: str
    role: str
    employee_id: Optional[int] = None
    manager_id: Optional[int] = None


class ScopeStrategy(str, enum.Enum):
    """How far a role's list results reach."""

    none = "none"  # no narrowing
    team = "team"  # own records plus the listed team members'
    self = "self"  # own records only


# Manager and agent see every record unless LIST_SCOPE_STRATEGIES narrows them.
DEFAULT_SCOPE_STRATEGIES: Mapping[str, ScopeStrategy] = MappingProxyType({
    Role.admin.value: ScopeStrategy.none,
    Role.manager.value: ScopeStrategy.none,
    Role.agent.value: ScopeStrategy.none,
    Role.employee.value: ScopeStrategy.self,
})

SUBMITTER_FIELD = "submitted_by_id"
ASSIGNEE_FIELD = "assigned_to_id"


def can_access_resource(
    principal: Principal,
    resource_owner_id: Optional[int] = None,
    resource_manager_id: Optional[int] = None,
) -> bool:
    """Decide whether ``principal`` may act on one resource.

    Admins always pass. Otherwise the principal must own the resource, or be
    a manager recorded as the resource's manager. With neither id present a
    non-admin is denied.
    """
    definition = get_role_definition(principal.role)
    role = definition.role if definition else None

    if role is Role.admin:
        return True
    if resource_owner_id is not None and resource_owner_id == principal.id:
        return True
    if (
        role is Role.manager
        and resource_manager_id is not None
        and resource_manager_id == principal.id
    ):
        return True
    return False


def scope_strategy_for(
    role, strategies: Optional[Mapping[str, ScopeStrategy]] = None
) -> Optional[ScopeStrategy]:
    """Strategy governing list results for ``role``; None for an unknown role.

    A known role missing from ``strategies`` falls back to ``self``.
    """
    definition = get_role_definition(role)
    if definition is None:
        return None
    strategy = (strategies or DEFAULT_SCOPE_STRATEGIES).get(definition.id, ScopeStrategy.self)
    return ScopeStrategy(strategy)


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _matches(record: Any, owner_field: str, ids: Collection[int]) -> bool:
    return (
        _field(record, SUBMITTER_FIELD) in ids
        or _field(record, ASSIGNEE_FIELD) in ids
        or _field(record, owner_field) in ids
    )


def filter_by_permissions(
    records: Sequence[Any],
    role: str,
    principal_id: int,
    owner_field: str = "id",
    strategies: Optional[Mapping[str, ScopeStrategy]] = None,
    team_member_ids: Optional[Collection[int]] = None,
):
    """Narrow an already-fetched list to what ``role`` may see.

    Records can be mappings or objects. With the ``none`` strategy the input
    sequence itself is returned. An unrecognized role sees nothing.
    """
    definition = get_role_definition(role)
    if definition is None:
        return []

    strategy = scope_strategy_for(definition.id, strategies)
    if strategy is ScopeStrategy.none:
        return records

    ids = {principal_id}
    if strategy is ScopeStrategy.team and team_member_ids:
        ids.update(team_member_ids)
    return [r for r in records if _matches(r, owner_field, ids)]
