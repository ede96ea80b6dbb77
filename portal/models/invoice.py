from typing import Optional
from sqlmodel import SQLModel, Field


class Invoice(SQLModel, table=True):
    __tablename__ = "invoices"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", index=True)

    # Smallest currency unit (e.g., cents)
    amount: int = Field(nullable=False)
    status: str = Field(default="draft")

    # ISO timestamps
    due_date: Optional[str] = None
    paid_at: Optional[str] = None
