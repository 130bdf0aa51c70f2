from fastapi import APIRouter

from src.inbox_admin.api.v1 import auth, invitations, members, profile

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(profile.router)
api_router.include_router(members.router)
api_router.include_router(invitations.router)
