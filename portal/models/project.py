"""
Project Model Module

Local mirror of billing provider projects. The billing provider is the system
of record for business fields; the portal owns progress, notes, documents and
invoices.
"""
from typing import Optional
from pydantic import field_validator
from sqlmodel import SQLModel, Field

from datetime import datetime, timezone

from portal.billing.normalize import normalize_date


class ProjectBase(SQLModel):
    title: str = Field(nullable=False)
    description: str = ""

    # Free text, or derived from the remote complete/active flags
    status: str = Field(default="active")

    # Percentage 0-100, owned by the portal
    progress: int = Field(default=0, ge=0, le=100)

    # ISO date (YYYY-MM-DD)
    due_date: Optional[str] = None

    # Amounts in the smallest currency unit (e.g., cents)
    budget: Optional[int] = None
    fixed_price: Optional[int] = None

    client_id: Optional[int] = Field(default=None, foreign_key="users.id")


class Project(ProjectBase, table=True):
    """
    Project mirror row.

    Attributes:
        id: Auto-incrementing primary key, owner key for notes/documents/invoices
        remote_id: Billing provider project id, unique when present
        created_at: ISO timestamp when the mirror row was created
    """
    __tablename__ = "projects"

    id: Optional[int] = Field(default=None, primary_key=True)
    remote_id: Optional[str] = Field(default=None, unique=True, index=True)
    created_at: Optional[str] = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class ProjectCreate(ProjectBase):
    remote_id: Optional[str] = None

    @field_validator("due_date")
    @classmethod
    def iso_due_date(cls, value: Optional[str]) -> Optional[str]:
        return normalize_date(value)


class ProjectRead(ProjectBase):
    id: int
    remote_id: Optional[str] = None
    created_at: Optional[str] = None
