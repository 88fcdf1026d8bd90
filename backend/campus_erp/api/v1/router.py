"""API v1 router aggregator.

All v1 endpoint routers are included here and mounted at /api/v1.
"""

from fastapi import APIRouter

from campus_erp.api.v1 import admin, auth, files, otp

router = APIRouter()

# =============================================================================
# Sessions
# =============================================================================

router.include_router(auth.router, prefix="/auth", tags=["auth"])

# =============================================================================
# Applicant email verification
# =============================================================================

router.include_router(otp.router, tags=["otp"])

# =============================================================================
# File retrieval
# =============================================================================

router.include_router(files.router, tags=["files"])

# =============================================================================
# Admin
# =============================================================================

router.include_router(admin.router, prefix="/admin", tags=["admin"])
