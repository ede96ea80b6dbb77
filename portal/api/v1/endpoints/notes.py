"""
Project Note Endpoints Module

Notes hang off a project, addressed by local or billing provider id. Anyone
who can see the project can read and add notes; a note can only be edited or
deleted by its creator or an admin.
"""
from datetime import datetime, timezone
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from portal.api import deps
from portal.billing.client import BillingClient
from portal.db.session import get_db
from portal.models.note import ProjectNote
from portal.models.project import Project
from portal.models.user import User
from portal.schemas.note import NoteCreate, NoteUpdate
from portal.services.resolver import resolve_accessible_project

router = APIRouter()


def _get_owned_note(db: Session, project: Project, note_id: int, current_user: User) -> ProjectNote:
    note = db.get(ProjectNote, note_id)
    if not note or note.project_id != project.id:
        raise HTTPException(status_code=404, detail="Note not found")

    # Only the creator or an admin may change a note
    if not current_user.is_admin and note.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not authorized")
    return note


@router.get("/{identifier}/notes", response_model=List[ProjectNote])
def list_notes(
    identifier: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_active_user),
    billing: Optional[BillingClient] = Depends(deps.get_billing_client),
):
    """Notes of a project, oldest first."""
    project = resolve_accessible_project(db, identifier, current_user, billing)
    statement = select(ProjectNote).where(ProjectNote.project_id == project.id).order_by(ProjectNote.created_at, ProjectNote.id)
    return db.exec(statement).all()


@router.post("/{identifier}/notes", response_model=ProjectNote, status_code=201)
def create_note(
    identifier: str,
    note_in: NoteCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_active_user),
    billing: Optional[BillingClient] = Depends(deps.get_billing_client),
):
    project = resolve_accessible_project(db, identifier, current_user, billing)
    note = ProjectNote(project_id=project.id, user_id=current_user.id, content=note_in.content)
    db.add(note)
    db.commit()
    db.refresh(note)
    return note


@router.patch("/{identifier}/notes/{note_id}", response_model=ProjectNote)
def update_note(
    identifier: str,
    note_id: int,
    note_in: NoteUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_active_user),
):
    """
    Edit a note's content.

    Raises:
        HTTPException 404: If the note doesn't exist on this project
        HTTPException 403: If the caller is neither the creator nor an admin
    """
    project = resolve_accessible_project(db, identifier, current_user)
    note = _get_owned_note(db, project, note_id, current_user)
    note.content = note_in.content
    note.updated_at = datetime.now(timezone.utc).isoformat()
    db.add(note)
    db.commit()
    db.refresh(note)
    return note


@router.delete("/{identifier}/notes/{note_id}")
def delete_note(
    identifier: str,
    note_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_active_user),
):
    project = resolve_accessible_project(db, identifier, current_user)
    note = _get_owned_note(db, project, note_id, current_user)
    db.delete(note)
    db.commit()
    return {"status": "success", "detail": "Note deleted"}
