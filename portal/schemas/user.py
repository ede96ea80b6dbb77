from pydantic import BaseModel, ConfigDict, EmailStr
from typing import Optional
from portal.models.user import UserRole


# Shared properties
class UserBase(BaseModel):
    email: Optional[EmailStr] = None
    company_name: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None


# Properties to return to client
class UserRead(UserBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    role: UserRole
    is_temporary_password: bool = False
    billing_client_id: Optional[str] = None
    created_at: Optional[str] = None


# Admin changes to another user's role
class UserRoleUpdate(BaseModel):
    role: UserRole


# Admin links a customer to a billing provider client
class UserBillingLink(BaseModel):
    billing_client_id: Optional[str] = None


# Public inquiry form; creates a pending account
class InquiryCreate(UserBase):
    email: EmailStr
    company_name: str


class TemporaryPassword(BaseModel):
    message: str
    temp_password: str
