"""
Project view and update flows shared by the project endpoints.

Reads overlay the cached view on the local mirror and refresh it from the
billing provider when possible. Updates are optimistic: the local row and the
cache are written first, then the provider; a provider failure downgrades the
response to an advisory instead of an error.
"""
import logging
from typing import Any, Dict, Optional

from sqlmodel import Session

from portal.billing.client import BillingClient
from portal.core.errors import RemoteUnavailableError, RemoteNotFoundError
from portal.models.project import Project, ProjectRead
from portal.schemas.project import ProjectDetail, ProjectUpdate
from portal.services.cache import ProjectViewCache, ReconciledView
from portal.services.stages import stage_for_progress

logger = logging.getLogger(__name__)

# Columns the provider is authoritative for and copied onto the mirror row
MIRRORED_COLUMNS = ("title", "description", "status")


def build_detail(project: Project, view: ReconciledView) -> ProjectDetail:
    data = ProjectRead.model_validate(project).model_dump()
    for name in ("progress", "due_date", "budget", "fixed_price"):
        if name in view.fields:
            data[name] = view.fields[name]
    progress = data.get("progress")
    if not isinstance(progress, int) or isinstance(progress, bool):
        progress = project.progress or 0
    data["progress"] = max(0, min(100, progress))
    return ProjectDetail(
        **data,
        stage=stage_for_progress(data["progress"]),
        visible=bool(view.fields.get("visible", True)),
        sync_status=view.sync_status,
        advisory=view.advisory,
    )


def _refresh_mirror(db: Session, project: Project, remote) -> None:
    changed = False
    for name in MIRRORED_COLUMNS:
        value = getattr(remote, name)
        if value is not None and getattr(project, name) != value:
            setattr(project, name, value)
            changed = True
    if changed:
        db.add(project)
        db.commit()
        db.refresh(project)


def load_project_view(db: Session, project: Project, cache: ProjectViewCache, billing: Optional[BillingClient] = None) -> ProjectDetail:
    """Current view of a project, falling back to cached values if the provider fails."""
    if project.remote_id and billing is not None:
        try:
            remote = billing.get_project(project.remote_id)
        except (RemoteUnavailableError, RemoteNotFoundError) as exc:
            logger.warning("Showing cached view of project %s: %s", project.id, exc)
            return build_detail(project, cache.reconcile(project.id, remote_ok=False))
        _refresh_mirror(db, project, remote)
        return build_detail(project, cache.reconcile(project.id, remote.view_fields()))

    return build_detail(project, cache.reconcile(project.id))


def apply_project_update(
    db: Session,
    project: Project,
    update: ProjectUpdate,
    cache: ProjectViewCache,
    billing: Optional[BillingClient] = None,
) -> ProjectDetail:
    """
    Save an admin's edit locally, then push it to the provider.

    The local row and the cache always keep the edit. If the provider write
    fails the response carries sync_status "pending_sync" and an advisory.
    """
    fields: Dict[str, Any] = update.model_dump(exclude_unset=True)
    if fields.get("complete") is True:
        fields.setdefault("status", "completed")

    for name in ("title", "description", "status", "progress", "due_date", "budget", "fixed_price"):
        if name in fields:
            setattr(project, name, fields[name])
    db.add(project)
    db.commit()
    db.refresh(project)

    remote_fields = {name: value for name, value in fields.items() if name not in ("progress", "status")}
    needs_sync = bool(project.remote_id) and bool(remote_fields)
    cache.write(project.id, fields, pending=needs_sync)

    if not needs_sync:
        return build_detail(project, cache.reconcile(project.id))

    if billing is None:
        logger.warning("No billing credentials, project %s update kept locally", project.id)
        return build_detail(project, cache.reconcile(project.id, remote_ok=False))

    try:
        remote = billing.update_project(project.remote_id, remote_fields)
    except (RemoteUnavailableError, RemoteNotFoundError) as exc:
        logger.warning("Project %s update kept locally, provider write failed: %s", project.id, exc)
        return build_detail(project, cache.reconcile(project.id, remote_ok=False))

    return build_detail(project, cache.reconcile(project.id, remote.view_fields()))
