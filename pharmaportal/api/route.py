from fastapi import APIRouter

from pharmaportal.api.auth import router as auth_router
from pharmaportal.api.file import router as file_router
from pharmaportal.api.pages import router as pages_router
from pharmaportal.api.profile import router as profile_router


router = APIRouter()  # Sem tag padrão - cada endpoint define sua própria tag
router.include_router(auth_router)
router.include_router(profile_router)
router.include_router(file_router)
router.include_router(pages_router)


@router.get("/health", tags=["System"])
def health():
    """Health check endpoint."""
    return {"status": "ok"}
