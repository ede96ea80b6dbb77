"""
Customer Inquiry Endpoint

Public form for prospective customers. Each inquiry creates a PENDING account
with a temporary password that an admin later approves.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, select

from portal.core.security import generate_temporary_password, get_password_hash
from portal.db.session import get_db
from portal.models.user import User, UserRole
from portal.schemas.user import InquiryCreate, TemporaryPassword

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=TemporaryPassword, status_code=status.HTTP_201_CREATED)
def create_inquiry(inquiry: InquiryCreate, db: Session = Depends(get_db)):
    existing = db.exec(select(User).where(User.username == inquiry.email)).first()
    if existing:
        raise HTTPException(status_code=400, detail="An account with this email already exists.")

    temp_password = generate_temporary_password()
    user = User(
        username=inquiry.email,
        email=inquiry.email,
        password=get_password_hash(temp_password),
        company_name=inquiry.company_name,
        phone_number=inquiry.phone_number,
        address=inquiry.address,
        role=UserRole.PENDING,
        is_temporary_password=True,
    )
    db.add(user)
    db.commit()
    logger.info("Inquiry received from %s", inquiry.company_name)
    # TODO: email the temporary password once the mail service is wired in
    return {"message": "Inquiry submitted successfully", "temp_password": temp_password}
