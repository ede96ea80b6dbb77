from typing import Optional
from sqlmodel import SQLModel, Field, JSON, Column


class CacheEntry(SQLModel, table=True):
    """
    One cached project view field, keyed like "project_progress_42".

    value holds {"value": ..., "written_at": <unix seconds>, "pending": bool}.
    pending marks a local edit the billing provider has not confirmed yet.
    """
    __tablename__ = "cache_entries"

    key: str = Field(primary_key=True)
    value: Optional[dict] = Field(default=None, sa_column=Column(JSON))
