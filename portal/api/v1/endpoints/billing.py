"""
Billing Provider Endpoints Module

Admin-only endpoints for connecting the portal to the billing provider through
the OAuth authorization-code flow, and for browsing its clients and projects.
"""
import logging
import time
from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from sqlmodel import Session

from portal.api import deps
from portal.billing.client import BillingClient, authorize_url, exchange_code
from portal.billing.normalize import RemoteClient, RemoteProject
from portal.billing.tokens import resolve_token_provider
from portal.core.errors import InvalidInputError, RemoteUnavailableError
from portal.core.security import create_oauth_state, verify_oauth_state
from portal.db.session import get_db
from portal.models.billing_connection import BillingConnection
from portal.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/auth")
def get_auth_url(current_user: User = Depends(deps.get_current_admin)):
    """URL of the provider's consent page, carrying a state bound to this admin."""
    return {"auth_url": authorize_url(state=create_oauth_state(current_user.id))}


@router.get("/callback")
def oauth_callback(
    code: str = "",
    state: str = "",
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_admin),
):
    """
    Exchange the authorization code and store the tokens for this admin.
    The state must be the one /billing/auth issued to the same admin.

    Redirects back to the clients page with ?billing=connected or
    ?billing=error.
    """
    try:
        if not verify_oauth_state(state, current_user.id):
            raise InvalidInputError("Invalid or expired OAuth state")
        if not code:
            raise InvalidInputError("No authorization code provided")
        tokens = exchange_code(code)
    except (InvalidInputError, RemoteUnavailableError) as exc:
        logger.warning("Billing provider connection failed for user %s: %s", current_user.id, exc)
        return RedirectResponse(url="/clients?billing=error")

    connection = db.get(BillingConnection, current_user.id) or BillingConnection(user_id=current_user.id, access_token="")
    connection.access_token = tokens.access_token
    connection.refresh_token = tokens.get("refresh_token")
    connection.expires_at = int(time.time()) + int(tokens.get("expires_in") or 3600)
    connection.token_type = tokens.get("token_type") or "Bearer"
    db.add(connection)
    db.commit()
    logger.info("User %s connected the billing provider", current_user.id)
    return RedirectResponse(url="/clients?billing=connected")


@router.get("/connection-status")
def connection_status(
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_admin),
):
    provider = resolve_token_provider(db, current_user)
    return {"connected": provider is not None, "source": provider.source if provider else None}


@router.post("/disconnect")
def disconnect(
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_admin),
):
    """Forget this admin's stored tokens. The environment token is unaffected."""
    connection = db.get(BillingConnection, current_user.id)
    if connection:
        db.delete(connection)
        db.commit()
    return {"status": "success", "detail": "Billing provider disconnected"}


@router.get("/clients", response_model=List[RemoteClient])
def list_clients(
    current_user: User = Depends(deps.get_current_admin),
    billing: BillingClient = Depends(deps.require_billing_client),
):
    return billing.list_clients()


@router.get("/projects", response_model=List[RemoteProject])
def list_remote_projects(
    current_user: User = Depends(deps.get_current_admin),
    billing: BillingClient = Depends(deps.require_billing_client),
):
    return billing.list_projects()


@router.get("/invoices", response_model=List[Dict[str, Any]])
def list_remote_invoices(
    current_user: User = Depends(deps.get_current_admin),
    billing: BillingClient = Depends(deps.require_billing_client),
):
    return billing.list_invoices()
