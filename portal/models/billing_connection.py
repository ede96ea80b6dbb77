from typing import Optional
from sqlmodel import SQLModel, Field


class BillingConnection(SQLModel, table=True):
    """OAuth tokens an admin obtained from the billing provider."""
    __tablename__ = "billing_connections"

    user_id: int = Field(foreign_key="users.id", primary_key=True)
    access_token: str = Field(nullable=False)
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None  # unix timestamp, seconds
    token_type: str = "Bearer"
