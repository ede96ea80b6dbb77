"""
Project Endpoints Module

Projects are addressed by either their local id or their billing provider id;
every route resolves the identifier through the project resolver. Admins see
and modify all projects, customers only view their own.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from portal.api import deps
from portal.billing.client import BillingClient
from portal.db.session import get_db
from portal.models.invoice import Invoice
from portal.models.project import Project, ProjectCreate, ProjectRead
from portal.models.user import User
from portal.schemas.project import ProjectDetail, ProjectUpdate, StageList, StageUpdate
from portal.services.cache import ProjectViewCache
from portal.services.projects import apply_project_update, load_project_view
from portal.services.resolver import resolve_accessible_project
from portal.services.stages import PROJECT_STAGES, progress_for_stage

router = APIRouter()


@router.get("", response_model=List[ProjectRead])
def list_projects(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_active_user),
):
    """
    Retrieve a paginated list of projects.

    Admins see all projects, customers see only projects they own.
    """
    statement = select(Project)
    if not current_user.is_admin:
        statement = statement.where(Project.client_id == current_user.id)
    return db.exec(statement.order_by(Project.id).offset(skip).limit(limit)).all()


@router.get("/stages", response_model=StageList)
def list_stages(current_user: User = Depends(deps.get_current_active_user)):
    """The ordered project stages and their progress thresholds."""
    return {"stages": [{"name": name, "progress": progress} for name, progress in PROJECT_STAGES]}


@router.get("/recent-invoices", response_model=List[Invoice])
def recent_invoices(
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_active_user),
):
    """The five invoices with the latest due dates across the caller's projects."""
    statement = select(Invoice).join(Project, Invoice.project_id == Project.id)
    if not current_user.is_admin:
        statement = statement.where(Project.client_id == current_user.id)
    invoices = db.exec(statement.where(Invoice.due_date.is_not(None))).all()
    return sorted(invoices, key=lambda invoice: invoice.due_date, reverse=True)[:5]


@router.post("", response_model=ProjectRead, status_code=201)
def create_project(
    project_in: ProjectCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_admin),
):
    """
    Create a local project, optionally linked to a billing provider project.

    Raises:
        HTTPException 400: If another project already mirrors the remote id
    """
    if project_in.remote_id:
        existing = db.exec(select(Project).where(Project.remote_id == project_in.remote_id)).first()
        if existing:
            raise HTTPException(status_code=400, detail="A project already mirrors this billing project")

    project = Project.model_validate(project_in)
    db.add(project)
    db.commit()
    db.refresh(project)
    return project


@router.get("/{identifier}", response_model=ProjectDetail)
def read_project(
    identifier: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_active_user),
    billing: Optional[BillingClient] = Depends(deps.get_billing_client),
    cache: ProjectViewCache = Depends(deps.get_view_cache),
):
    """
    Get a project by local or billing provider id, with its cached view.

    Raises:
        HTTPException 404: If no local or remote project matches
        HTTPException 403: If the caller does not own the project
        HTTPException 502: If the billing provider fails while mirroring
    """
    project = resolve_accessible_project(db, identifier, current_user, billing)
    return load_project_view(db, project, cache, billing)


@router.patch("/{identifier}", response_model=ProjectDetail)
def update_project(
    identifier: str,
    project_update: ProjectUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_admin),
    billing: Optional[BillingClient] = Depends(deps.get_billing_client),
    cache: ProjectViewCache = Depends(deps.get_view_cache),
):
    """
    Update a project. The change is saved locally first; when the billing
    provider cannot be updated the response has sync_status "pending_sync"
    and an advisory message instead of an error.
    """
    project = resolve_accessible_project(db, identifier, current_user, billing)
    return apply_project_update(db, project, project_update, cache, billing)


@router.put("/{identifier}/stage", response_model=ProjectDetail)
def update_project_stage(
    identifier: str,
    stage_in: StageUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_admin),
    cache: ProjectViewCache = Depends(deps.get_view_cache),
):
    """Move a project to a named stage; progress becomes the stage threshold."""
    progress = progress_for_stage(stage_in.stage)
    project = resolve_accessible_project(db, identifier, current_user)
    return apply_project_update(db, project, ProjectUpdate(progress=progress), cache)
