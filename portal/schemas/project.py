from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from portal.billing.normalize import normalize_date
from portal.models.project import ProjectRead

# Backed by NOT NULL columns or flags; null is not a valid change
_NON_NULLABLE_UPDATES = ("title", "description", "status", "progress", "visible", "complete")


class ProjectUpdate(BaseModel):
    """Fields an admin may change on a project; only provided ones are applied."""
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    due_date: Optional[str] = None
    budget: Optional[int] = Field(default=None, ge=0)
    fixed_price: Optional[int] = Field(default=None, ge=0)
    visible: Optional[bool] = None
    complete: Optional[bool] = None

    @field_validator(*_NON_NULLABLE_UPDATES)
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value

    @field_validator("due_date")
    @classmethod
    def iso_due_date(cls, value: Optional[str]) -> Optional[str]:
        """Accept YYYY-MM-DD (or a full ISO timestamp); null or "" clears it."""
        return normalize_date(value)


class ProjectDetail(ProjectRead):
    """A project with its cached view overlaid and the resulting stage."""
    stage: str
    visible: bool = True
    sync_status: str = "synced"
    advisory: Optional[str] = None


class StageUpdate(BaseModel):
    stage: str


class StageRead(BaseModel):
    name: str
    progress: int


class StageList(BaseModel):
    stages: List[StageRead]
