from schemas.application import (
    LoanApplicationCreate,
    LoanApplicationCreated,
    LoanStatus,
    MessageResponse,
    StatusUpdate,
)
from schemas.user import SignupRequest, SignupResponse

__all__ = [
    "LoanApplicationCreate",
    "LoanApplicationCreated",
    "LoanStatus",
    "MessageResponse",
    "StatusUpdate",
    "SignupRequest",
    "SignupResponse",
]
