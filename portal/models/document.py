from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime, timezone


class Document(SQLModel, table=True):
    __tablename__ = "documents"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", index=True)
    name: str = Field(nullable=False)
    content: str = Field(nullable=False)
    created_at: Optional[str] = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
