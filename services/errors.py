"""
Domain errors raised by the services. Each carries the HTTP status the API
layer reports it with; main.py registers the handler that does the mapping.
"""
from __future__ import annotations


class LoanPortalError(Exception):
    status_code = 500
    message = "An error occurred"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class DocumentNotFound(LoanPortalError):
    status_code = 404
    message = "Document not found"

    def __init__(self, path: str):
        super().__init__(f"Document not found: {path}")
        self.path = path


class MissingFieldsError(LoanPortalError):
    status_code = 400

    def __init__(self, message: str, fields: list[str]):
        super().__init__(message)
        self.fields = fields


class EmailAlreadyRegistered(LoanPortalError):
    status_code = 409
    message = "Email already registered."


class InvalidSignupData(LoanPortalError):
    status_code = 400
    message = "Invalid signup data."


class InvalidToken(LoanPortalError):
    status_code = 401
    message = "Invalid or expired token."


class ApplicationNotFound(LoanPortalError):
    status_code = 404

    def __init__(self, application_id: str):
        super().__init__(f"Application {application_id} not found.")
        self.application_id = application_id


class ApplicationOwnerUnknown(LoanPortalError):
    status_code = 409

    def __init__(self, application_id: str):
        super().__init__(f"Application {application_id} has no owning user.")
        self.application_id = application_id


class InvalidStatus(LoanPortalError):
    status_code = 400

    def __init__(self, status: str):
        super().__init__(f"Invalid status {status!r}. Expected one of: Pending, Approved, Rejected.")
        self.status = status


class RequestFailed(LoanPortalError):
    """An unexpected store or identity-provider failure, with the context it happened in."""

    def __init__(self, message: str, details: str):
        super().__init__(message)
        self.details = details
