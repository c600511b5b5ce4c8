from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

LoanStatus = Literal["Pending", "Approved", "Rejected"]

Amount = Union[int, float]


class LoanApplicationCreate(BaseModel):
    # Required fields are checked by the record manager so a missing one is a 400, not a 422.
    loan_type: Optional[str] = None
    purpose: Optional[str] = None
    pan_number: Optional[str] = None
    requested_loan_amount: Optional[Amount] = None
    # Computed by the client from the EMI calculator; stored as given.
    monthly_emi: Optional[Amount] = None
    total_interest: Optional[Amount] = None
    principal_amount: Optional[Amount] = None
    total_amount_payable: Optional[Amount] = None
    id_proof_file_name: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoanApplicationCreated(BaseModel):
    message: str
    application_id: str

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StatusUpdate(BaseModel):
    status: Optional[LoanStatus] = None
    repayment: Optional[str] = None


class MessageResponse(BaseModel):
    message: str
