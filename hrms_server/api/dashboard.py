# hrms_server/api/dashboard.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from hrms_server.core.decorators import log_execution_time, log_requests
from hrms_server.core.security import get_current_active_user
from hrms_server.models.model import Employee
from hrms_server.schemas.schema import ApiResponse, DashboardResponse
from hrms_server.services.dashboards import build_dashboard

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/dashboard",
    tags=["dashboard"],
    responses={401: {"description": "Unauthorized"}},
)


@router.get("", response_model=ApiResponse[DashboardResponse])
@log_requests
@log_execution_time
async def get_dashboard(
    request: Request,
    current_user: Employee = Depends(get_current_active_user)
):
    """
    Dashboard for the authenticated employee, chosen by role
    """
    try:
        return ApiResponse(data=DashboardResponse(**build_dashboard(current_user)))
    except Exception as e:
        logger.error(f"Dashboard build failed for {current_user.employee_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load dashboard"
        )
