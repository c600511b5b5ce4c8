from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from api.deps import CurrentUser, get_record_manager, require_admin
from api.errors import handle_errors
from schemas.application import MessageResponse, StatusUpdate
from services.applications import ApplicationRecordManager

router = APIRouter(prefix="/api/admin", tags=["admin"])

MSG_STATUS_REQUIRED = "Status is required."


@router.get("/applications")
async def list_applications(
    admin: CurrentUser = Depends(require_admin),
    records: ApplicationRecordManager = Depends(get_record_manager),
):
    with handle_errors("Error fetching all loan applications for admin"):
        return await records.list("admin")


@router.get("/applications/{application_id}")
async def get_application(
    application_id: str,
    admin: CurrentUser = Depends(require_admin),
    records: ApplicationRecordManager = Depends(get_record_manager),
):
    with handle_errors("Error fetching loan application"):
        return await records.get(application_id)


@router.put("/applications/{application_id}/status", response_model=MessageResponse)
async def update_application_status(
    application_id: str,
    body: StatusUpdate,
    admin: CurrentUser = Depends(require_admin),
    records: ApplicationRecordManager = Depends(get_record_manager),
):
    if not body.status:
        raise HTTPException(status_code=400, detail=MSG_STATUS_REQUIRED)
    with handle_errors("Error updating application status"):
        await records.update_status(application_id, body.status, body.repayment)
    return {"message": f"Application {application_id} status updated to {body.status}."}
