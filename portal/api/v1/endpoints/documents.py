"""
Document and Invoice Endpoints Module

Documents and invoices are owned by the local store and attached to a project
by its local id. Customers can read and upload to their own projects; only
admins create invoices.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from portal.api import deps
from portal.billing.client import BillingClient
from portal.db.session import get_db
from portal.models.document import Document
from portal.models.invoice import Invoice
from portal.models.user import User
from portal.schemas.document import DocumentCreate, InvoiceCreate
from portal.services.resolver import resolve_accessible_project

router = APIRouter()


@router.get("/{identifier}/documents", response_model=List[Document])
def list_documents(
    identifier: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_active_user),
    billing: Optional[BillingClient] = Depends(deps.get_billing_client),
):
    project = resolve_accessible_project(db, identifier, current_user, billing)
    return db.exec(select(Document).where(Document.project_id == project.id).order_by(Document.id)).all()


@router.post("/{identifier}/documents", response_model=Document, status_code=201)
def create_document(
    identifier: str,
    document_in: DocumentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_active_user),
    billing: Optional[BillingClient] = Depends(deps.get_billing_client),
):
    project = resolve_accessible_project(db, identifier, current_user, billing)
    document = Document(project_id=project.id, name=document_in.name, content=document_in.content)
    db.add(document)
    db.commit()
    db.refresh(document)
    return document


@router.get("/{identifier}/invoices", response_model=List[Invoice])
def list_invoices(
    identifier: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_active_user),
    billing: Optional[BillingClient] = Depends(deps.get_billing_client),
):
    project = resolve_accessible_project(db, identifier, current_user, billing)
    return db.exec(select(Invoice).where(Invoice.project_id == project.id).order_by(Invoice.id)).all()


@router.post("/{identifier}/invoices", response_model=Invoice, status_code=201)
def create_invoice(
    identifier: str,
    invoice_in: InvoiceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_admin),
    billing: Optional[BillingClient] = Depends(deps.get_billing_client),
):
    project = resolve_accessible_project(db, identifier, current_user, billing)
    invoice = Invoice(project_id=project.id, **invoice_in.model_dump())
    db.add(invoice)
    db.commit()
    db.refresh(invoice)
    return invoice
