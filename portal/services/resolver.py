"""
Project Resolver Module

Routes receive a single project identifier that may be either the local
primary key ("42") or a billing provider project id ("fb-9913" or "9913").
resolve_project() turns it into exactly one local Project row, creating the
local mirror the first time a remote id is seen.
"""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from portal.billing.client import BillingClient
from portal.core.errors import NotFoundError, PermissionDeniedError, RemoteNotFoundError
from portal.models.project import Project
from portal.models.user import User, UserRole

logger = logging.getLogger(__name__)


def _parse_local_id(identifier: str) -> Optional[int]:
    try:
        return int(identifier)
    except (TypeError, ValueError):
        return None


def find_local_project(db: Session, identifier: str) -> Optional[Project]:
    """Look the identifier up as a primary key first, then as a remote id."""
    local_id = _parse_local_id(identifier)
    if local_id is not None:
        project = db.get(Project, local_id)
        if project is not None:
            return project
    return db.exec(select(Project).where(Project.remote_id == identifier)).first()


def _owner_for_remote_client(db: Session, remote_client_id: Optional[str], user: User) -> Optional[int]:
    """The requesting customer; for admins the customer linked to the remote client, else the admin."""
    if not user.is_admin:
        return user.id
    if remote_client_id:
        customer = db.exec(
            select(User).where(User.billing_client_id == remote_client_id, User.role == UserRole.CUSTOMER)
        ).first()
        if customer is not None:
            return customer.id
    return user.id


def resolve_project(db: Session, identifier: str, user: User, billing: Optional[BillingClient] = None) -> Project:
    """
    Resolve a local or remote identifier to one local Project.

    Steps:
    1. integer identifier -> local primary key
    2. otherwise, or if missing -> local row with that remote id
    3. otherwise, when billing credentials are available -> fetch the remote
       project and insert a local mirror. A non-admin may only mirror a
       project billed to their own billing_client_id.
    4. otherwise -> NotFoundError

    Raises:
        NotFoundError: nothing local matches and the provider has no such
            project (or no credentials are available)
        PermissionDeniedError: a non-admin named a remote project billed to
            another client (nothing is inserted)
        RemoteUnavailableError: the provider could not be reached or failed
    """
    identifier = str(identifier).strip()
    if not identifier:
        raise NotFoundError("Project not found")

    project = find_local_project(db, identifier)
    if project is not None:
        return project

    if billing is None:
        raise NotFoundError(f"Project {identifier} not found")

    try:
        remote = billing.get_project(identifier)
    except RemoteNotFoundError:
        raise NotFoundError(f"Project {identifier} not found")

    # Customers may only bring in projects billed to their own client record
    if not user.is_admin and (not user.billing_client_id or remote.client_id != user.billing_client_id):
        logger.warning("User %s denied remote project %s billed to client %s", user.id, identifier, remote.client_id)
        raise PermissionDeniedError("Not authorized to access this project")

    project = Project(
        remote_id=identifier,
        title=remote.title,
        description=remote.description,
        status=remote.status,
        due_date=remote.due_date,
        budget=remote.budget,
        fixed_price=remote.fixed_price,
        client_id=_owner_for_remote_client(db, remote.client_id, user),
    )
    db.add(project)
    try:
        db.commit()
    except IntegrityError:
        # Another request mirrored the same remote id first
        db.rollback()
        existing = db.exec(select(Project).where(Project.remote_id == identifier)).first()
        if existing is None:
            raise
        return existing
    db.refresh(project)
    logger.info("Mirrored remote project %s as local project %s", identifier, project.id)
    return project


def ensure_project_access(project: Project, user: User) -> None:
    """Admins see every project; everyone else only the projects they own."""
    if user.is_admin:
        return
    if user.role != UserRole.CUSTOMER or project.client_id != user.id:
        raise PermissionDeniedError("Not authorized to access this project")


def resolve_accessible_project(db: Session, identifier: str, user: User, billing: Optional[BillingClient] = None) -> Project:
    project = resolve_project(db, identifier, user, billing)
    ensure_project_access(project, user)
    return project
