"""
Billing Token Providers

Where the bearer token for the billing provider comes from. A request either
uses the OAuth tokens its admin stored after connecting, or the long-lived
BILLING_ADMIN_TOKEN from the environment. resolve_token_provider() is the only
place that decides between them.
"""
import logging
import time
from typing import Optional

from sqlmodel import Session

from portal.core.config import settings
from portal.models.billing_connection import BillingConnection
from portal.models.user import User

logger = logging.getLogger(__name__)


class TokenProvider:
    """Supplies a bearer token for billing provider requests."""
    source = "none"

    def get_token(self) -> Optional[str]:
        raise NotImplementedError


class StoredTokenProvider(TokenProvider):
    """Tokens saved for a user by the OAuth callback."""
    source = "stored"

    def __init__(self, connection: BillingConnection, clock=time.time):
        self.connection = connection
        self._clock = clock

    def get_token(self) -> Optional[str]:
        expires_at = self.connection.expires_at
        if expires_at is not None and expires_at <= self._clock():
            logger.info("Stored billing token for user %s has expired", self.connection.user_id)
            return None
        return self.connection.access_token


class EnvironmentTokenProvider(TokenProvider):
    """Long-lived token configured for non-interactive access."""
    source = "environment"

    def __init__(self, token: str):
        self.token = token

    def get_token(self) -> Optional[str]:
        return self.token or None


def resolve_token_provider(db: Session, user: Optional[User], admin_token: Optional[str] = None) -> Optional[TokenProvider]:
    """
    Pick the token source for a request.

    The user's own unexpired stored connection wins; otherwise the environment
    token is used. Returns None when no credentials are available.
    """
    if user is not None and user.id is not None:
        connection = db.get(BillingConnection, user.id)
        if connection is not None:
            provider = StoredTokenProvider(connection)
            if provider.get_token():
                return provider

    token = admin_token if admin_token is not None else settings.BILLING_ADMIN_TOKEN
    if token:
        return EnvironmentTokenProvider(token)
    return None
