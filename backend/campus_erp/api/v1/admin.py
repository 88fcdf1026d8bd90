"""Admin endpoints.

Every route here is gated on the ADMIN role.
"""

from fastapi import APIRouter

from campus_erp.api.deps import AdminOnly
from campus_erp.core.responses import DataResponse

router = APIRouter()


@router.get("/dashboard")
async def admin_dashboard(principal: AdminOnly) -> DataResponse[dict]:
    """Landing payload for the admin dashboard."""
    return DataResponse(
        message="Welcome to Admin Dashboard",
        data={"user_id": str(principal.user_id), "role": principal.role.value},
    )
