from types import SimpleNamespace

import pytest

from simpleit.core.rbac import (
    DEFAULT_SCOPE_STRATEGIES,
    Principal,
    ScopeStrategy,
    can_access_resource,
    filter_by_permissions,
    scope_strategy_for,
)


def principal(role: str, id_: int = 3) -> Principal:
    return Principal(id=id_, username=f"{role}-{id_}", role=role)


@pytest.mark.parametrize(
    "owner, manager",
    [(None, None), (1, None), (None, 1), (99, 98)],
)
def test_admin_can_access_anything(owner, manager):
    assert can_access_resource(principal("admin"), owner, manager)


@pytest.mark.parametrize("role", ["manager", "agent", "employee", "wizard"])
def test_non_admin_denied_without_attribution(role):
    assert not can_access_resource(principal(role))


@pytest.mark.parametrize("role", ["manager", "agent", "employee"])
def test_owner_can_access(role):
    assert can_access_resource(principal(role, 5), resource_owner_id=5)


def test_manager_of_resource_can_access():
    assert can_access_resource(principal("manager", 3), resource_owner_id=9, resource_manager_id=3)


def test_agent_is_not_treated_as_manager():
    assert not can_access_resource(principal("agent", 3), resource_owner_id=9, resource_manager_id=3)


def test_employee_is_not_treated_as_manager():
    assert not can_access_resource(principal("employee", 3), resource_manager_id=3)


def test_non_owner_non_manager_denied():
    assert not can_access_resource(principal("manager", 3), resource_owner_id=9, resource_manager_id=4)
    assert not can_access_resource(principal("employee", 3), resource_owner_id=9)


def test_unknown_role_owner_still_owns():
    assert can_access_resource(principal("wizard", 9), resource_owner_id=9)


RECORDS = [
    {"id": 1, "submitted_by_id": 7, "assigned_to_id": None},
    {"id": 2, "submitted_by_id": 8, "assigned_to_id": 7},
    {"id": 3, "submitted_by_id": 8, "assigned_to_id": 9},
]


def test_admin_sees_input_unchanged():
    assert filter_by_permissions(RECORDS, "admin", 7) is RECORDS


@pytest.mark.parametrize("role", ["manager", "Agent"])
def test_manager_and_agent_are_not_narrowed(role):
    assert filter_by_permissions(RECORDS, role, 7) is RECORDS


def test_employee_sees_submitted_and_assigned():
    assert filter_by_permissions(RECORDS, "employee", 7) == RECORDS[:2]


def test_employee_owner_field():
    records = [{"id": 7}, {"id": 8}, {"owner": 7}]
    assert filter_by_permissions(records, "employee", 7) == [{"id": 7}]
    assert filter_by_permissions(records, "employee", 7, owner_field="owner") == [{"owner": 7}]


def test_filter_reads_object_attributes():
    tickets = [
        SimpleNamespace(id=1, submitted_by_id=7, assigned_to_id=None),
        SimpleNamespace(id=2, submitted_by_id=8, assigned_to_id=None),
    ]
    assert filter_by_permissions(tickets, "employee", 7) == tickets[:1]


def test_unknown_role_sees_nothing():
    assert filter_by_permissions(RECORDS, "wizard", 7) == []


def test_team_strategy_includes_team_members():
    strategies = {"manager": ScopeStrategy.team}
    visible = filter_by_permissions(
        RECORDS, "manager", 4, strategies=strategies, team_member_ids={9}
    )
    assert visible == [RECORDS[2]]


def test_self_strategy_can_be_applied_to_agents():
    visible = filter_by_permissions(RECORDS, "agent", 9, strategies={"agent": ScopeStrategy.self})
    assert visible == [RECORDS[2]]


def test_default_strategies_are_read_only():
    with pytest.raises(TypeError):
        DEFAULT_SCOPE_STRATEGIES["employee"] = ScopeStrategy.none
    assert filter_by_permissions(RECORDS, "employee", 7) == RECORDS[:2]


def test_scope_strategy_for():
    assert scope_strategy_for("Manager") is ScopeStrategy.none
    assert scope_strategy_for("employee") is ScopeStrategy.self
    assert scope_strategy_for("manager", {"manager": "team"}) is ScopeStrategy.team
    assert scope_strategy_for("agent", {"manager": ScopeStrategy.team}) is ScopeStrategy.self
    assert scope_strategy_for("wizard") is None
