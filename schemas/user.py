from typing import Any, Optional

from pydantic import BaseModel, EmailStr, field_validator


class SignupRequest(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    mobile: Optional[str] = None

    @field_validator("email", "password", "mobile", mode="before")
    @classmethod
    def _blank_as_missing(cls, value: Any) -> Any:
        # Lets the route report blank fields as missing instead of as malformed.
        if isinstance(value, str) and not value.strip():
            return None
        return value


class SignupResponse(BaseModel):
    message: str
    uid: str
