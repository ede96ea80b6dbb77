from fastapi import APIRouter, Depends
from typing import Any
from sqlmodel import Session, text

from portal.db.session import get_db

router = APIRouter()


@router.get("", response_model=dict[str, Any])
def health_check(db: Session = Depends(get_db)) -> Any:
    """
    Health check endpoint. Reports whether the database answers.
    """
    db.connection().execute(text("SELECT 1"))
    return {"status": "ok", "database": "connected"}
