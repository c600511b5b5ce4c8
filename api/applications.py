from __future__ import annotations

from fastapi import APIRouter, Depends

from api.deps import CurrentUser, get_current_user, get_record_manager
from api.errors import handle_errors
from schemas.application import LoanApplicationCreate, LoanApplicationCreated
from services.applications import ApplicationRecordManager

router = APIRouter(prefix="/api", tags=["applications"])


@router.post("/apply-loan", status_code=201, response_model=LoanApplicationCreated)
async def apply_loan(
    body: LoanApplicationCreate,
    user: CurrentUser = Depends(get_current_user),
    records: ApplicationRecordManager = Depends(get_record_manager),
):
    with handle_errors("Error submitting loan application"):
        application_id = await records.create(user.uid, body.model_dump(by_alias=True))
    return {"message": "Loan application submitted successfully!", "application_id": application_id}


@router.get("/loan-status")
async def loan_status(
    user: CurrentUser = Depends(get_current_user),
    records: ApplicationRecordManager = Depends(get_record_manager),
):
    with handle_errors("Error fetching loan status"):
        return await records.list("user", user.uid)
