"""
Project Note Model Module

Free-text notes attached to a project. Any user with access to the project can
add one; only its creator or an admin may edit or delete it.
"""
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime, timezone


class ProjectNote(SQLModel, table=True):
    __tablename__ = "project_notes"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", index=True)
    user_id: int = Field(foreign_key="users.id")
    content: str = Field(nullable=False)

    created_at: Optional[str] = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    updated_at: Optional[str] = None
