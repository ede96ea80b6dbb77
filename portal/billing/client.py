"""
Billing Provider Client

Thin synchronous wrapper over the billing provider's REST API (FreshBooks).
Every project and client payload is normalized before it leaves this module.
Failures are not retried: transport errors and non-success statuses raise
RemoteUnavailableError, a 404 raises RemoteNotFoundError.
"""
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import requests

from portal.billing.normalize import (
    RemoteClient,
    RemoteProject,
    normalize_client,
    normalize_project,
    to_remote_payload,
)
from portal.billing.tokens import TokenProvider
from portal.core.config import Settings, settings as default_settings
from portal.core.errors import RemoteNotFoundError, RemoteUnavailableError

logger = logging.getLogger(__name__)

OAUTH_SCOPES = [
    "user:profile:read",
    "user:clients:read",
    "user:projects:read",
    "user:invoices:read",
]


class BillingTokens(dict):
    """Token response of the authorization-code exchange."""

    @property
    def access_token(self) -> str:
        return self["access_token"]


def authorize_url(config: Settings = default_settings, state: Optional[str] = None) -> str:
    """Authorization URL the admin is redirected to when connecting."""
    if not config.billing_configured:
        raise RemoteUnavailableError("Billing provider is not configured")
    params = {
        "client_id": config.BILLING_CLIENT_ID,
        "response_type": "code",
        "redirect_uri": config.BILLING_REDIRECT_URI,
        "scope": " ".join(OAUTH_SCOPES),
    }
    if state:
        params["state"] = state
    return f"{config.BILLING_AUTH_URL}?{urlencode(params)}"


def exchange_code(code: str, config: Settings = default_settings, http=None) -> BillingTokens:
    """Trade an authorization code for access and refresh tokens."""
    if not config.billing_configured:
        raise RemoteUnavailableError("Billing provider is not configured")
    http = http or requests
    try:
        response = http.post(
            f"{config.BILLING_API_BASE}/auth/oauth/token",
            json={
                "grant_type": "authorization_code",
                "client_id": config.BILLING_CLIENT_ID,
                "client_secret": config.BILLING_CLIENT_SECRET,
                "code": code,
                "redirect_uri": config.BILLING_REDIRECT_URI,
            },
            timeout=config.BILLING_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        raise RemoteUnavailableError(f"Token exchange failed: {exc}")

    if not response.ok:
        raise RemoteUnavailableError(
            f"Token exchange failed with status {response.status_code}",
            upstream_status=response.status_code,
        )
    body = response.json()
    if not body.get("access_token"):
        raise RemoteUnavailableError("Token exchange returned no access token")

    return BillingTokens(
        access_token=body["access_token"],
        refresh_token=body.get("refresh_token"),
        expires_in=body.get("expires_in") or 3600,
        token_type=body.get("token_type") or "Bearer",
    )


def _normalize_one(raw: Dict[str, Any]) -> RemoteProject:
    try:
        return normalize_project(raw)
    except ValueError as exc:
        raise RemoteUnavailableError(f"Billing provider returned a malformed project: {exc}")


def _normalize_all(normalize, raw_items: List[Dict[str, Any]]) -> list:
    """Normalize a listing, skipping records the provider sent malformed."""
    items = []
    for raw in raw_items:
        try:
            items.append(normalize(raw))
        except ValueError as exc:
            logger.warning("Skipping malformed billing record %r: %s", raw.get("id"), exc)
    return items


class BillingClient:
    """
    Authenticated client for one token provider.

    Account and business ids are looked up once per instance from the
    identity endpoint; an instance lives for a single request.
    """

    def __init__(self, token_provider: TokenProvider, config: Settings = default_settings, session: requests.Session = None):
        self.token_provider = token_provider
        self.config = config
        self.session = session or requests.Session()
        self._identity: Optional[Dict[str, Any]] = None

    # --- transport -------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        token = self.token_provider.get_token()
        if not token:
            raise RemoteUnavailableError("No valid billing provider credentials")

        url = f"{self.config.BILLING_API_BASE}{path}"
        headers = {"Authorization": f"Bearer {token}", "Api-Version": "alpha"}
        try:
            response = self.session.request(
                method, url, headers=headers, timeout=self.config.BILLING_TIMEOUT_SECONDS, **kwargs
            )
        except requests.RequestException as exc:
            logger.warning("Billing provider unreachable for %s %s: %s", method, path, exc)
            raise RemoteUnavailableError(f"Billing provider unreachable: {exc}")

        if response.status_code == 404:
            raise RemoteNotFoundError(f"Billing provider has no resource at {path}")
        if not response.ok:
            logger.warning("Billing provider returned %s for %s %s", response.status_code, method, path)
            raise RemoteUnavailableError(
                f"Billing provider returned status {response.status_code}",
                upstream_status=response.status_code,
            )
        try:
            return response.json()
        except ValueError:
            raise RemoteUnavailableError("Billing provider returned a non-JSON body")

    # --- identity --------------------------------------------------------

    def identity(self) -> Dict[str, Any]:
        if self._identity is None:
            body = self._request("GET", "/auth/api/v1/users/me")
            memberships = (body.get("response") or {}).get("business_memberships") or []
            if not memberships:
                raise RemoteUnavailableError("No billing provider account found")
            business = memberships[0].get("business") or {}
            self._identity = {
                "account_id": business.get("account_id"),
                "business_id": business.get("id"),
            }
        return self._identity

    def account_id(self) -> str:
        account_id = self.identity().get("account_id")
        if not account_id:
            raise RemoteUnavailableError("No billing provider account found")
        return str(account_id)

    def business_id(self) -> str:
        business_id = self.identity().get("business_id")
        if business_id is None:
            raise RemoteUnavailableError("No billing provider business found")
        return str(business_id)

    # --- resources -------------------------------------------------------

    def list_clients(self) -> List[RemoteClient]:
        body = self._request(
            "GET",
            f"/accounting/account/{self.account_id()}/users/clients",
            params={"include[]": ["email", "organization", "phone"]},
        )
        raw_clients = ((body.get("response") or {}).get("result") or {}).get("clients") or []
        return _normalize_all(normalize_client, raw_clients)

    def list_projects(self) -> List[RemoteProject]:
        body = self._request("GET", f"/projects/business/{self.business_id()}/projects")
        return _normalize_all(normalize_project, body.get("projects") or [])

    def get_project(self, remote_id: str) -> RemoteProject:
        body = self._request("GET", f"/projects/business/{self.business_id()}/project/{remote_id}")
        raw = body.get("project")
        if not raw:
            raise RemoteNotFoundError(f"Billing provider has no project {remote_id}")
        return _normalize_one(raw)

    def update_project(self, remote_id: str, fields: Dict[str, Any]) -> RemoteProject:
        body = self._request(
            "PUT",
            f"/projects/business/{self.business_id()}/project/{remote_id}",
            json=to_remote_payload(fields),
        )
        raw = body.get("project")
        if not raw:
            raise RemoteUnavailableError("Billing provider returned no project after update")
        return _normalize_one(raw)

    def list_invoices(self) -> List[Dict[str, Any]]:
        body = self._request(
            "GET",
            f"/accounting/account/{self.account_id()}/invoices/invoices",
            params={"include[]": ["lines", "payments"]},
        )
        return ((body.get("response") or {}).get("result") or {}).get("invoices") or []
