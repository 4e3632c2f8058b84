"""Shared pytest fixtures."""

import os

# Must be set before simpleit is imported: settings and the engine are module globals.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DEBUG"] = "false"
os.environ["FAIL_CLOSED_ON_LOOKUP_ERROR"] = "false"

from typing import Callable, Dict, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from simpleit.core.security import hash_password
from simpleit.db.base import Base
from simpleit.db.session import SessionLocal, engine
from simpleit.main import app
from simpleit.models import Asset, Employee, Ticket, User

PASSWORD = "secret-pass"


@pytest.fixture()
def db() -> Iterator[Session]:
    """Fresh in-memory schema per test."""
    import simpleit.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def org(db: Session) -> Dict[str, object]:
    """Admin, two managers, an agent and two employees with linked records.

    ``alice`` reports to ``manager``; ``bob`` reports to ``other_manager``.
    """
    hashed = hash_password(PASSWORD)
    admin = User(username="admin", hashed_password=hashed, role="admin")
    manager = User(username="manager", hashed_password=hashed, role="manager")
    other_manager = User(username="other_manager", hashed_password=hashed, role="Manager")
    agent = User(username="agent", hashed_password=hashed, role="agent")
    db.add_all([admin, manager, other_manager, agent])
    db.flush()

    alice = User(username="alice", hashed_password=hashed, role="employee", manager_id=manager.id)
    bob = User(username="bob", hashed_password=hashed, role="employee", manager_id=other_manager.id)
    db.add_all([alice, bob])
    db.flush()

    alice_emp = Employee(employee_code="EMP-1", english_name="Alice", user_id=alice.id)
    bob_emp = Employee(employee_code="EMP-2", english_name="Bob", user_id=bob.id)
    db.add_all([alice_emp, bob_emp])
    db.flush()
    alice.employee_id = alice_emp.id
    bob.employee_id = bob_emp.id

    alice_laptop = Asset(asset_tag="AST-1", type="Laptop", status="In Use", assigned_employee_id=alice_emp.id)
    bob_laptop = Asset(asset_tag="AST-2", type="Laptop", status="In Use", assigned_employee_id=bob_emp.id)
    spare = Asset(asset_tag="AST-3", type="Monitor", status="Available")
    db.add_all([alice_laptop, bob_laptop, spare])
    db.flush()

    alice_ticket = Ticket(title="VPN broken", submitted_by_id=alice.id, status="Open")
    bob_ticket = Ticket(title="New mouse", submitted_by_id=bob.id, status="Open")
    assigned_to_alice = Ticket(
        title="Check printer", submitted_by_id=agent.id, assigned_to_id=alice.id, status="Open"
    )
    db.add_all([alice_ticket, bob_ticket, assigned_to_alice])
    db.commit()

    return {
        "admin": admin.id,
        "manager": manager.id,
        "other_manager": other_manager.id,
        "agent": agent.id,
        "alice": alice.id,
        "bob": bob.id,
        "alice_employee": alice_emp.id,
        "bob_employee": bob_emp.id,
        "alice_laptop": alice_laptop.id,
        "bob_laptop": bob_laptop.id,
        "spare": spare.id,
        "alice_ticket": alice_ticket.id,
        "bob_ticket": bob_ticket.id,
        "assigned_to_alice": assigned_to_alice.id,
    }


@pytest.fixture()
def client(db: Session) -> Iterator[TestClient]:
    """Anonymous client."""
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def login(org) -> Iterator[Callable[[str], TestClient]]:
    """Factory returning a client logged in as the given username."""
    clients = []

    def _login(username: str) -> TestClient:
        c = TestClient(app)
        c.__enter__()
        clients.append(c)
        response = c.post("/api/auth/login", json={"username": username, "password": PASSWORD})
        assert response.status_code == 200, response.text
        return c

    yield _login
    for c in clients:
        c.__exit__(None, None, None)
