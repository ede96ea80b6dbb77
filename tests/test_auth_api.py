"""API tests for registration, login, inquiries and user administration."""

from sqlmodel import select

from portal.core.security import verify_password
from portal.models.user import User, UserRole
from tests.conftest import PASSWORD, auth_headers


def test_register_creates_pending_user(client, db):
    response = client.post(
        "/api/v1/auth/register",
        json={"email": "new@example.com", "password": "long-enough", "company_name": "Acme"},
    )
    assert response.status_code == 200
    assert response.json()["role"] == "pending"

    user = db.exec(select(User).where(User.username == "new@example.com")).first()
    assert verify_password("long-enough", user.password)


def test_register_duplicate(client, customer):
    response = client.post(
        "/api/v1/auth/register",
        json={"email": customer.username, "password": "long-enough"},
    )
    assert response.status_code == 400


def test_login_sets_cookie(client, customer):
    response = client.post("/api/v1/auth/login", data={"username": customer.username, "password": PASSWORD})
    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"
    assert "access_token" in response.cookies


def test_login_wrong_password(client, customer):
    response = client.post("/api/v1/auth/login", data={"username": customer.username, "password": "nope"})
    assert response.status_code == 401


def test_invalid_token(client):
    response = client.get("/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 403


def test_inquiry_then_approval(client, db, admin):
    response = client.post("/api/v1/inquiries", json={"email": "lead@example.com", "company_name": "Lead Co"})
    assert response.status_code == 201
    temp_password = response.json()["temp_password"]

    login = client.post("/api/v1/auth/login", data={"username": "lead@example.com", "password": temp_password})
    token = {"Authorization": f"Bearer {login.json()['access_token']}"}

    # pending accounts can change their password but not see projects
    assert client.post("/api/v1/auth/change-password", json={"new_password": "brand-new-pass"}, headers=token).status_code == 200
    assert client.get("/api/v1/projects", headers=token).status_code == 403

    lead = db.exec(select(User).where(User.username == "lead@example.com")).first()
    response = client.patch(f"/api/v1/users/{lead.id}/role", json={"role": "customer"}, headers=auth_headers(admin))
    assert response.json()["role"] == "customer"
    assert client.get("/api/v1/projects", headers=token).status_code == 200

    db.refresh(lead)
    assert lead.is_temporary_password is False


def test_link_billing_client(client, admin, other_customer):
    response = client.patch(
        f"/api/v1/users/{other_customer.id}/billing-client",
        json={"billing_client_id": "88"},
        headers=auth_headers(admin),
    )
    assert response.json()["billing_client_id"] == "88"


def test_reset_password(client, db, admin, customer):
    response = client.post(f"/api/v1/users/{customer.id}/reset-password", headers=auth_headers(admin))
    temp_password = response.json()["temp_password"]

    db.refresh(customer)
    assert customer.is_temporary_password is True
    assert verify_password(temp_password, customer.password)


def test_user_admin_requires_admin(client, customer):
    assert client.get("/api/v1/users", headers=auth_headers(customer)).status_code == 403


def test_me(client, customer):
    body = client.get("/api/v1/users/me", headers=auth_headers(customer)).json()
    assert body["username"] == customer.username
    assert body["role"] == UserRole.CUSTOMER.value
