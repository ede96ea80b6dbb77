from fastapi import APIRouter
from portal.api.v1.endpoints import (
    auth, health, users, inquiries, billing,
    projects, notes, documents
)

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(inquiries.router, prefix="/inquiries", tags=["inquiries"])
api_router.include_router(billing.router, prefix="/billing", tags=["billing"])

# Project resources; notes and documents nest under /projects/{identifier}
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(notes.router, prefix="/projects", tags=["notes"])
api_router.include_router(documents.router, prefix="/projects", tags=["documents"])
