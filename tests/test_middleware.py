import logging

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient
from starlette.middleware.sessions import SessionMiddleware

from simpleit.core.exceptions import setup_exception_handlers
from simpleit.core.middleware import AttachUserInfoMiddleware
from simpleit.core.security import (
    RequirePermission,
    RequireRole,
    create_access_token,
    require_auth,
)

USERS = {
    1: {"id": 1, "username": "root", "role": "admin"},
    2: {"id": 2, "username": "boss", "role": "Manager", "manager_id": None},
    3: {"id": 3, "username": "helpdesk", "role": "agent"},
    4: {"id": 4, "username": "staff", "role": "employee", "employee_id": 40, "manager_id": 2},
    5: {"id": 5, "username": "nobody", "role": None},
    6: {"id": 6, "username": "ghost", "role": "superuser"},
}


def store_lookup(user_id):
    return USERS.get(user_id)


def broken_lookup(user_id):
    raise RuntimeError("database unavailable")


def build_app(lookup=store_lookup, fail_closed=False) -> FastAPI:
    app = FastAPI()
    app.add_middleware(
        AttachUserInfoMiddleware,
        user_lookup=lookup,
        fail_closed_on_lookup_error=fail_closed,
    )
    app.add_middleware(SessionMiddleware, secret_key="test-secret")
    setup_exception_handlers(app)

    @app.post("/session/{user_id}")
    async def start_session(user_id: int, request: Request):
        request.session["user_id"] = user_id
        return {"ok": True}

    @app.get("/open")
    async def open_route(request: Request):
        principal = request.state.user
        if principal is None:
            return {"user": None}
        return {
            "user": principal.username,
            "role": principal.role,
            "employee_id": principal.employee_id,
            "manager_id": principal.manager_id,
        }

    @app.get("/private")
    async def private(principal=Depends(require_auth)):
        return {"id": principal.id}

    @app.get("/all-tickets")
    async def all_tickets(principal=Depends(RequirePermission("tickets:view:all"))):
        return {"id": principal.id}

    @app.get("/managers-only")
    async def managers_only(principal=Depends(RequireRole("manager"))):
        return {"id": principal.id}

    return app


def session_client(user_id=None, **kwargs) -> TestClient:
    client = TestClient(build_app(**kwargs))
    if user_id is not None:
        assert client.post(f"/session/{user_id}").status_code == 200
    return client


AUTH_REQUIRED = {"message": "Authentication required"}


def test_no_session_is_rejected_by_require_auth():
    client = session_client()
    response = client.get("/private")
    assert response.status_code == 401
    assert response.json() == AUTH_REQUIRED


def test_no_session_is_rejected_by_permission_and_role_gates():
    client = session_client()
    assert client.get("/all-tickets").json() == AUTH_REQUIRED
    assert client.get("/managers-only").status_code == 401


def test_principal_is_attached_from_session():
    client = session_client(4)
    assert client.get("/open").json() == {
        "user": "staff",
        "role": "employee",
        "employee_id": 40,
        "manager_id": 2,
    }
    assert client.get("/private").json() == {"id": 4}


def test_missing_role_defaults_to_employee():
    client = session_client(5)
    assert client.get("/open").json()["role"] == "employee"


def test_unknown_user_stays_anonymous():
    client = session_client(99)
    assert client.get("/open").json() == {"user": None}
    assert client.get("/private").status_code == 401


def test_lookup_failure_degrades_to_anonymous(caplog):
    client = session_client(1, lookup=broken_lookup)
    with caplog.at_level(logging.ERROR, logger="simpleit"):
        assert client.get("/open").json() == {"user": None}
    assert "Error attaching user info" in caplog.text

    response = client.get("/all-tickets")
    assert response.status_code == 401
    assert response.json() == AUTH_REQUIRED


def test_lookup_failure_can_fail_closed():
    client = session_client(1, lookup=broken_lookup, fail_closed=True)
    response = client.get("/open")
    assert response.status_code == 503
    assert response.json() == {"message": "User lookup failed"}


def test_anonymous_requests_skip_lookup_even_when_failing_closed():
    client = session_client(lookup=broken_lookup, fail_closed=True)
    assert client.get("/open").json() == {"user": None}


def test_missing_permission_is_forbidden():
    client = session_client(4)
    response = client.get("/all-tickets")
    assert response.status_code == 403
    assert response.json() == {
        "message": "Insufficient permissions",
        "required": "tickets:view:all",
        "userRole": "employee",
    }


def test_granted_permission_passes():
    assert session_client(3).get("/all-tickets").json() == {"id": 3}


@pytest.mark.parametrize("user_id, allowed", [(1, True), (2, True), (3, False), (4, False), (6, False)])
def test_role_level_gate(user_id, allowed):
    response = session_client(user_id).get("/managers-only")
    if allowed:
        assert response.status_code == 200
    else:
        assert response.status_code == 403
        body = response.json()
        assert body["message"] == "Insufficient role level"
        assert body["required"] == "manager"
        assert body["userRole"] == USERS[user_id]["role"]


def test_unknown_role_has_no_permissions():
    response = session_client(6).get("/all-tickets")
    assert response.status_code == 403
    assert response.json()["userRole"] == "superuser"


def test_bearer_token_identifies_user():
    client = session_client()
    token = create_access_token({"sub": "3"})
    response = client.get("/private", headers={"Authorization": f"Bearer {token}"})
    assert response.json() == {"id": 3}


def test_invalid_bearer_token_is_anonymous():
    client = session_client()
    response = client.get("/private", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_require_role_rejects_unknown_minimum():
    with pytest.raises(ValueError):
        RequireRole("wizard")
