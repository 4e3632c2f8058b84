from simpleit.core.config import settings
from simpleit.core.security import find_unreachable_permissions
from simpleit.main import app
from simpleit.models import AuditLog, Notification


def test_every_guarded_route_is_reachable():
    assert find_unreachable_permissions(app) == set()


def test_me_requires_login(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json() == {"message": "Authentication required"}


def test_login_rejects_bad_password(client, org):
    response = client.post("/api/auth/login", json={"username": "alice", "password": "nope"})
    assert response.status_code == 401


def test_login_writes_audit_entry(login, db, org):
    login("alice")
    entry = db.query(AuditLog).filter(AuditLog.user_id == org["alice"]).one()
    assert entry.action == "LOGIN"


def test_me_reports_role_and_permissions(login, org):
    body = login("other_manager").get("/api/auth/me").json()
    assert body["id"] == org["other_manager"]
    assert body["role"] == "manager"
    assert body["role_display_name"] == {"en": "Manager", "ar": "مدير"}
    assert "audit:logs" in body["permissions"]


def test_logout_ends_session(login):
    alice = login("alice")
    assert alice.post("/api/auth/logout").status_code == 200
    assert alice.get("/api/auth/me").status_code == 401


def test_employee_sees_own_and_assigned_tickets(login, org):
    tickets = login("alice").get("/api/tickets/").json()
    assert {t["id"] for t in tickets} == {org["alice_ticket"], org["assigned_to_alice"]}


def test_agent_sees_all_tickets(login):
    assert len(login("agent").get("/api/tickets/").json()) == 3


def test_employee_cannot_open_someone_elses_ticket(login, org):
    alice = login("alice")
    assert alice.get(f"/api/tickets/{org['alice_ticket']}").status_code == 200
    assert alice.get(f"/api/tickets/{org['assigned_to_alice']}").status_code == 200
    response = alice.get(f"/api/tickets/{org['bob_ticket']}")
    assert response.status_code == 403
    assert response.json()["userRole"] == "employee"


def test_employee_sees_only_assigned_assets(login, org):
    assets = login("alice").get("/api/assets/").json()
    assert [a["id"] for a in assets] == [org["alice_laptop"]]
    assert assets[0]["assigned_user_id"] == org["alice"]


def test_manager_sees_all_assets(login):
    assert len(login("manager").get("/api/assets/").json()) == 3


def test_employee_detail_for_own_manager_only(login, org):
    path = f"/api/employees/{org['alice_employee']}"
    assert login("manager").get(path).status_code == 200
    assert login("alice").get(path).status_code == 200

    response = login("other_manager").get(path)
    assert response.status_code == 403
    assert response.json() == {
        "message": "Insufficient permissions",
        "required": "employees:view:all",
        "userRole": "manager",
    }
    assert login("bob").get(path).status_code == 403


def test_agent_can_view_any_employee(login, org):
    agent = login("agent")
    assert agent.get(f"/api/employees/{org['bob_employee']}").status_code == 200
    assert len(agent.get("/api/employees/").json()) == 2


def test_employee_cannot_list_employees(login):
    response = login("alice").get("/api/employees/")
    assert response.status_code == 403
    assert response.json()["message"] == "Insufficient role level"
    assert response.json()["required"] == "agent"


def test_agent_cannot_delete_tickets(login, org):
    response = login("agent").delete(f"/api/tickets/{org['bob_ticket']}")
    assert response.status_code == 403
    assert response.json() == {
        "message": "Insufficient role level",
        "required": "manager",
        "userRole": "agent",
    }


def test_manager_deletes_ticket(login, org):
    manager = login("manager")
    assert manager.delete(f"/api/tickets/{org['bob_ticket']}").status_code == 200
    assert manager.get(f"/api/tickets/{org['bob_ticket']}").status_code == 404


def test_employee_opens_ticket(login, org):
    response = login("bob").post("/api/tickets/", json={"title": "Screen flickers"})
    assert response.status_code == 201
    body = response.json()
    assert body["submitted_by_id"] == org["bob"]
    assert body["status"] == "Open"
    assert body["ticket_code"] == f"TKT-{body['id']:04d}"


def test_employee_cannot_update_tickets(login, org):
    response = login("alice").patch(
        f"/api/tickets/{org['alice_ticket']}", json={"status": "Closed"}
    )
    assert response.status_code == 403
    assert response.json()["required"] == "tickets:update"


def test_assignment_notifies_assignee(login, db, org):
    response = login("agent").patch(
        f"/api/tickets/{org['bob_ticket']}", json={"assigned_to_id": org["agent"]}
    )
    assert response.status_code == 200

    notes = db.query(Notification).filter(Notification.user_id == org["agent"]).all()
    assert [n.category for n in notes] == ["assignments"]
    assert notes[0].entity_id == org["bob_ticket"]


def test_status_change_notifies_submitter(login, org):
    login("agent").patch(f"/api/tickets/{org['alice_ticket']}", json={"status": "In Progress"})
    notes = login("alice").get("/api/notifications/").json()
    assert [n["category"] for n in notes] == ["status_changes"]


def test_asset_assignment_notifies_holder(login, org):
    response = login("agent").put(
        f"/api/assets/{org['spare']}/assign", json={"employee_id": org["bob_employee"]}
    )
    assert response.status_code == 200
    assert response.json()["assigned_user_id"] == org["bob"]
    notes = login("bob").get("/api/notifications/").json()
    assert notes[0]["type"] == "Asset"


def test_manager_cannot_create_users(login):
    response = login("manager").post(
        "/api/users/", json={"username": "carol", "password": "secret-pass"}
    )
    assert response.status_code == 403
    assert response.json()["required"] == "users:create"


def test_admin_creates_user_and_changes_role(login, org):
    admin = login("admin")
    response = admin.post(
        "/api/users/",
        json={
            "username": "carol",
            "password": "secret-pass",
            "role": "Agent",
            "manager_id": org["manager"],
        },
    )
    assert response.status_code == 201
    user = response.json()
    assert user["role"] == "agent"

    response = admin.put(f"/api/users/{user['id']}/role", json={"role": "manager"})
    assert response.status_code == 200
    assert response.json()["role"] == "manager"


def test_unknown_role_cannot_be_assigned(login, org):
    response = login("admin").put(f"/api/users/{org['alice']}/role", json={"role": "wizard"})
    assert response.status_code == 400


def test_duplicate_username_conflicts(login):
    response = login("admin").post(
        "/api/users/", json={"username": "alice", "password": "secret-pass"}
    )
    assert response.status_code == 409


def test_manager_lists_subordinates(login, org):
    users = login("manager").get("/api/users/subordinates").json()
    assert [u["id"] for u in users] == [org["alice"]]


def test_audit_logs_for_managers_only(login):
    assert login("manager").get("/api/audit-logs/").status_code == 200
    assert login("agent").get("/api/audit-logs/").status_code == 403


def test_system_health_for_admin_only(login):
    assert login("admin").get("/api/system/health").json()["database"] == "ok"
    assert login("manager").get("/api/system/health").status_code == 403


def test_assignable_roles(login):
    roles = login("agent").get("/api/roles/assignable").json()
    assert [r["id"] for r in roles] == ["agent", "employee"]


def test_preferences_round_trip(login):
    alice = login("alice")
    defaults = alice.get("/api/notifications/preferences").json()
    assert defaults["ticket_assignments"] is True
    assert defaults["dnd_enabled"] is False

    response = alice.put(
        "/api/notifications/preferences",
        json={
            "ticket_status_changes": False,
            "dnd_enabled": True,
            "dnd_start_time": "22:00",
            "dnd_end_time": "07:00",
            "dnd_days": [5, 6, 0],
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert body["ticket_status_changes"] is False
    assert body["ticket_assignments"] is True
    assert body["dnd_days"] == [0, 5, 6]


def test_dnd_without_times_is_rejected(login):
    response = login("alice").put("/api/notifications/preferences", json={"dnd_enabled": True})
    assert response.status_code == 400


def test_broadcast_requires_manage_permission(login):
    payload = {"title": "Maintenance", "message": "Email is down tonight"}
    assert login("agent").post("/api/notifications/broadcast", json=payload).status_code == 403
    assert login("manager").post("/api/notifications/broadcast", json=payload).json() == {"delivered": 6}


def test_mark_read(login):
    login("admin").post(
        "/api/notifications/broadcast", json={"title": "Hi", "message": "Welcome"}
    )
    bob = login("bob")
    note = bob.get("/api/notifications/").json()[0]
    assert bob.post(f"/api/notifications/{note['id']}/read").status_code == 200
    assert bob.get("/api/notifications/", params={"unread_only": True}).json() == []


def test_ticket_required_fields_cannot_be_cleared(login, org):
    agent = login("agent")
    path = f"/api/tickets/{org['alice_ticket']}"
    for field in ("title", "priority", "status"):
        response = agent.patch(path, json={field: None})
        assert response.status_code == 422, field

    ticket = agent.get(path).json()
    assert ticket["title"] == "VPN broken"
    assert ticket["status"] == "Open"
    assert agent.patch(path, json={"description": None}).status_code == 200


def test_team_scope_limits_manager_to_reports(login, org, monkeypatch):
    monkeypatch.setattr(settings, "LIST_SCOPE_STRATEGIES", {"Manager": "team"})
    manager = login("manager")

    tickets = manager.get("/api/tickets/").json()
    assert {t["id"] for t in tickets} == {org["alice_ticket"], org["assigned_to_alice"]}

    assets = manager.get("/api/assets/").json()
    assert [a["id"] for a in assets] == [org["alice_laptop"]]

    # Agents keep the default scope
    assert len(login("agent").get("/api/tickets/").json()) == 3
