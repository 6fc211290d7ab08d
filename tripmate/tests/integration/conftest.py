"""
tests/integration/conftest.py — Fixtures and helpers for all integration tests.

Design:
  - Tests run against the database in TEST_DATABASE_URL, in-memory SQLite
    by default (Flask-SQLAlchemy shares one connection for "sqlite://").
  - A fresh app and a fresh schema are created for every test function,
    then dropped, so tests never see each other's rows.

Helper functions (not fixtures) are provided for common operations:
  - make_trip(client, ...)     → trip dict (owner included in members)
  - add_member(client, ...)    → member dict
  - make_expense(client, ...)  → HTTP response
  - get_settlement(client, ...)→ full response JSON

These are plain functions (not pytest fixtures) so they can be called with
arbitrary arguments in any test without fixture parameterization overhead.
"""

from __future__ import annotations

import pytest

from tripmate.app import create_app
from tripmate.app.extensions import db as _db


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app():
    """
    Creates the Flask application in 'testing' mode with an empty schema.

    Steps:
      1. Create app with TestingConfig.
      2. Run db.create_all() to create all tables.
      3. Yield the app for the test.
      4. Drop all tables at teardown.
    """
    flask_app = create_app("testing")

    with flask_app.app_context():
        _db.create_all()

    yield flask_app

    with flask_app.app_context():
        _db.session.remove()
        _db.drop_all()


# ═══════════════════════════════════════════════════════════════════════════
# Client fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def client(app):
    """Flask test client. Each test gets a fresh client (function-scoped)."""
    return app.test_client()


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

def make_trip(
    client,
    name: str = "Kyoto Trip",
    owner_name: str = "Alice",
    owner_user_id: str | None = "user-alice",
    **extra,
) -> dict:
    """
    Creates a trip and returns the trip data dict.
    The owner is the first entry of trip["members"].
    """
    payload = {"name": name, "owner_name": owner_name, "owner_user_id": owner_user_id}
    payload.update(extra)
    resp = client.post("/api/v1/trips", json=payload)
    assert resp.status_code == 201, f"make_trip failed: {resp.get_json()}"
    return resp.get_json()["data"]


def add_member(
    client,
    trip_id: str,
    display_name: str,
    user_id: str | None = None,
) -> dict:
    """Adds a member and returns the member data dict."""
    resp = client.post(
        f"/api/v1/trips/{trip_id}/members",
        json={"display_name": display_name, "user_id": user_id},
    )
    assert resp.status_code == 201, f"add_member failed: {resp.get_json()}"
    return resp.get_json()["data"]


def make_expense(
    client,
    trip_id: str,
    amount: int,
    paid_by_member_id: str | None,
    split_member_ids: list[str],
    title: str = "Test Expense",
    category: str = "other",
    **extra,
):
    """Creates an expense and returns the HTTP response."""
    payload: dict = {
        "title": title,
        "amount": amount,
        "paid_by_member_id": paid_by_member_id,
        "split_member_ids": split_member_ids,
        "category": category,
    }
    payload.update(extra)
    return client.post(f"/api/v1/trips/{trip_id}/expenses", json=payload)


def get_settlement(client, trip_id: str) -> dict:
    """Returns the full settlement response JSON ({"data", "warnings"})."""
    resp = client.get(f"/api/v1/trips/{trip_id}/settlement")
    assert resp.status_code == 200, f"get_settlement failed: {resp.get_json()}"
    return resp.get_json()


def setup_trip_with_members(client, *names: str) -> tuple[dict, list[dict]]:
    """
    Creates a trip owned by names[0] and adds the remaining names as manual
    members. Returns (trip, members) with members in roster order.
    """
    owner_name, *others = names or ("Alice",)
    trip = make_trip(client, owner_name=owner_name)
    members = [trip["members"][0]]
    for name in others:
        members.append(add_member(client, trip["id"], name))
    return trip, members
