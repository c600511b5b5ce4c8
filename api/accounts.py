from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_identity, get_settings, get_store
from api.errors import handle_errors
from config import Settings
from schemas.user import SignupRequest, SignupResponse
from services.accounts import register_user
from services.document_store import DocumentStore
from services.identity import IdentityProvider

router = APIRouter(prefix="/api", tags=["accounts"])

MSG_SIGNUP_FIELDS = "Email, password, and mobile are required."


@router.post("/signup", status_code=201, response_model=SignupResponse)
async def signup(
    body: SignupRequest,
    identity: IdentityProvider = Depends(get_identity),
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    if not body.email or not body.password or not body.mobile:
        raise HTTPException(status_code=400, detail=MSG_SIGNUP_FIELDS)
    with handle_errors("Error creating user"):
        uid = await register_user(
            identity,
            store,
            settings.app_id,
            email=body.email,
            password=body.password,
            mobile=body.mobile,
        )
    return {"message": "User created successfully!", "uid": uid}
