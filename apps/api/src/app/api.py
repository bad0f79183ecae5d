from fastapi import APIRouter

from app.modules.applications import router as applications_router
from app.modules.auth import router as auth_router
from app.modules.email_templates import router as email_router
from app.modules.users.router import router as users_router
from app.modules.verification import router as verification_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(users_router, prefix="/users", tags=["Users"])

api_router.include_router(verification_router, prefix="/verification", tags=["Verification"])

api_router.include_router(applications_router, prefix="/applications", tags=["Applications"])

api_router.include_router(email_router, prefix="/email", tags=["Email"])
