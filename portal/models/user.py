"""
User Model Module

This module defines the User model and UserRole enumeration for authentication
and authorization throughout the portal. Clients of the billing provider are
represented as users with the CUSTOMER role.
"""
from enum import Enum
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime, timezone


class UserRole(str, Enum):
    """
    Enumeration of user roles defining permission levels in the portal.

    - PENDING: Submitted an inquiry, awaiting approval by an admin
    - CUSTOMER: Approved client who can view their own projects
    - ADMIN: Full access to every project, user and the billing connection
    """
    PENDING = "pending"
    CUSTOMER = "customer"
    ADMIN = "admin"


class User(SQLModel, table=True):
    """
    User model representing portal accounts.

    Attributes:
        id: Auto-incrementing primary key
        username: Login name, the user's email address (unique)
        password: bcrypt hash
        email: Contact email address
        company_name: Company the user belongs to
        phone_number: Contact phone number
        address: Postal address
        role: One of UserRole
        is_temporary_password: Set when an admin or inquiry issued the password
        last_password_change: ISO timestamp of the last password update
        billing_client_id: Billing provider customer id, for reverse lookups
        created_at: ISO timestamp when the account was created
    """
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)

    # Authentication fields
    username: str = Field(unique=True, index=True, nullable=False)
    password: str = Field(nullable=False)

    # Profile information
    email: Optional[str] = None
    company_name: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None

    role: UserRole = Field(default=UserRole.PENDING)
    is_temporary_password: bool = False
    last_password_change: Optional[str] = None

    # Billing provider customer id (string ids on the provider side)
    billing_client_id: Optional[str] = Field(default=None, index=True)

    created_at: Optional[str] = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
