from .user import User, UserRole
from .project import Project
from .note import ProjectNote
from .document import Document
from .invoice import Invoice
from .billing_connection import BillingConnection
from .cache_entry import CacheEntry

__all__ = [
    "User", "UserRole",
    "Project",
    "ProjectNote",
    "Document",
    "Invoice",
    "BillingConnection",
    "CacheEntry",
]
