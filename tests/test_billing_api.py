"""API tests for the billing provider connection endpoints."""

from urllib.parse import parse_qs, urlparse

import pytest

from portal.api import deps
from portal.billing.client import BillingTokens
from portal.core.config import settings
from portal.core.security import create_oauth_state, verify_oauth_state
from portal.main import app
from portal.models.billing_connection import BillingConnection
from portal.models.user import UserRole
from tests.conftest import auth_headers, make_user

BILLING = "/api/v1/billing"


def test_connection_status_without_credentials(client, admin, monkeypatch):
    monkeypatch.setattr("portal.billing.tokens.settings.BILLING_ADMIN_TOKEN", None)
    response = client.get(f"{BILLING}/connection-status", headers=auth_headers(admin))
    assert response.json() == {"connected": False, "source": None}


def test_connection_status_with_stored_tokens(client, db, admin):
    db.add(BillingConnection(user_id=admin.id, access_token="stored"))
    db.commit()
    response = client.get(f"{BILLING}/connection-status", headers=auth_headers(admin))
    assert response.json() == {"connected": True, "source": "stored"}


def test_disconnect_removes_stored_tokens(client, db, admin):
    db.add(BillingConnection(user_id=admin.id, access_token="stored"))
    db.commit()

    response = client.post(f"{BILLING}/disconnect", headers=auth_headers(admin))
    assert response.status_code == 200
    assert db.get(BillingConnection, admin.id) is None


def test_callback_without_code_redirects_with_error(client, admin):
    response = client.get(f"{BILLING}/callback", headers=auth_headers(admin), follow_redirects=False)
    assert response.status_code == 307
    assert response.headers["location"] == "/clients?billing=error"


def test_remote_listings(client, admin, billing):
    billing.clients = [{"id": 77, "email": "c@acme.io", "organization": "Acme"}]

    clients = client.get(f"{BILLING}/clients", headers=auth_headers(admin)).json()
    projects = client.get(f"{BILLING}/projects", headers=auth_headers(admin)).json()

    assert clients[0]["organization"] == "Acme"
    assert projects[0]["id"] == "9001"


def test_listings_need_a_connection(client, admin):
    app.dependency_overrides[deps.get_billing_client] = lambda: None
    response = client.get(f"{BILLING}/clients", headers=auth_headers(admin))
    assert response.status_code == 401


def test_listings_surface_provider_outage(client, admin, billing):
    billing.unavailable = True
    response = client.get(f"{BILLING}/projects", headers=auth_headers(admin))
    assert response.status_code == 502


def test_customers_cannot_manage_connection(client, customer):
    assert client.get(f"{BILLING}/connection-status", headers=auth_headers(customer)).status_code == 403


@pytest.fixture
def exchanged(monkeypatch):
    """Replace the token exchange and record the codes it receives."""
    codes = []

    def fake_exchange(code):
        codes.append(code)
        return BillingTokens(access_token="fresh-token", refresh_token="r", expires_in=3600, token_type="Bearer")

    monkeypatch.setattr("portal.api.v1.endpoints.billing.exchange_code", fake_exchange)
    return codes


def test_auth_url_carries_state_for_admin(client, admin, monkeypatch):
    monkeypatch.setattr(settings, "BILLING_CLIENT_ID", "cid")
    monkeypatch.setattr(settings, "BILLING_CLIENT_SECRET", "secret")
    monkeypatch.setattr(settings, "BILLING_REDIRECT_URI", "https://portal.example.com/api/v1/billing/callback")

    auth_url = client.get(f"{BILLING}/auth", headers=auth_headers(admin)).json()["auth_url"]
    state = parse_qs(urlparse(auth_url).query)["state"][0]

    assert verify_oauth_state(state, admin.id)


def test_callback_with_valid_state_stores_tokens(client, db, admin, exchanged):
    response = client.get(
        f"{BILLING}/callback",
        params={"code": "the-code", "state": create_oauth_state(admin.id)},
        headers=auth_headers(admin),
        follow_redirects=False,
    )

    assert response.headers["location"] == "/clients?billing=connected"
    assert exchanged == ["the-code"]
    assert db.get(BillingConnection, admin.id).access_token == "fresh-token"


def test_callback_without_state_is_rejected(client, db, admin, exchanged):
    response = client.get(
        f"{BILLING}/callback", params={"code": "the-code"}, headers=auth_headers(admin), follow_redirects=False
    )

    assert response.headers["location"] == "/clients?billing=error"
    assert exchanged == []
    assert db.get(BillingConnection, admin.id) is None


def test_callback_with_another_admins_state_is_rejected(client, db, admin, exchanged):
    other_admin = make_user(db, "second-admin@example.com", UserRole.ADMIN)
    response = client.get(
        f"{BILLING}/callback",
        params={"code": "the-code", "state": create_oauth_state(other_admin.id)},
        headers=auth_headers(admin),
        follow_redirects=False,
    )

    assert response.headers["location"] == "/clients?billing=error"
    assert exchanged == []


def test_access_token_is_not_a_valid_state(client, admin, exchanged):
    access_token = auth_headers(admin)["Authorization"].split(" ", 1)[1]
    response = client.get(
        f"{BILLING}/callback",
        params={"code": "the-code", "state": access_token},
        headers=auth_headers(admin),
        follow_redirects=False,
    )

    assert response.headers["location"] == "/clients?billing=error"
    assert exchanged == []
