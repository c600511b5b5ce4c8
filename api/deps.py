from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import Settings
from services.accounts import is_admin
from services.applications import ApplicationRecordManager
from services.document_store import DocumentStore
from services.identity import IdentityProvider

MSG_NO_TOKEN = "No token provided."
MSG_NOT_ADMIN = "Access denied: Admin privileges required."

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    uid: str
    claims: dict[str, Any] = field(default_factory=dict)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_identity(request: Request) -> IdentityProvider:
    return request.app.state.identity


def get_record_manager(
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> ApplicationRecordManager:
    return ApplicationRecordManager(store, settings.app_id)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    identity: IdentityProvider = Depends(get_identity),
) -> CurrentUser:
    """Verify the bearer token. Verification failures raise InvalidToken (401)."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail=MSG_NO_TOKEN, headers={"WWW-Authenticate": "Bearer"})
    claims = await identity.verify_token(credentials.credentials)
    return CurrentUser(uid=claims["uid"], claims=claims)


async def require_admin(
    user: CurrentUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    if settings.admin_role_required and not await is_admin(store, settings.app_id, user.uid, user.claims):
        raise HTTPException(status_code=403, detail=MSG_NOT_ADMIN)
    return user
