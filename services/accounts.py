from __future__ import annotations

import logging
from typing import Any, Optional

from services import paths
from services.document_store import DocumentStore
from services.identity import IdentityProvider

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


async def register_user(
    identity: IdentityProvider,
    store: DocumentStore,
    app_id: str,
    email: str,
    password: str,
    mobile: str,
) -> str:
    """
    Create the identity record, then the profile document. If the profile
    write fails the identity record is deleted again so a retry can succeed.
    """
    uid = await identity.create_user(email=email, password=password, phone_number=mobile)
    try:
        await store.set(
            paths.user_profile_path(app_id, uid),
            {"email": email, "mobile": mobile, "createdAt": store.server_timestamp()},
        )
    except Exception:
        logger.exception("Profile write failed for %s; removing identity record", uid)
        try:
            await identity.delete_user(uid)
        except Exception:
            logger.exception("Could not remove identity record %s after failed signup", uid)
        raise
    logger.info("Registered user %s", uid)
    return uid


async def get_profile(store: DocumentStore, app_id: str, uid: str) -> Optional[dict[str, Any]]:
    return await store.get(paths.user_profile_path(app_id, uid))


async def is_admin(store: DocumentStore, app_id: str, uid: str, claims: dict[str, Any]) -> bool:
    """An admin either carries the "admin" custom claim or has role "admin" on their profile."""
    if claims.get(ADMIN_ROLE) is True:
        return True
    profile = await get_profile(store, app_id, uid)
    return bool(profile) and profile.get("role") == ADMIN_ROLE


async def set_role(store: DocumentStore, app_id: str, uid: str, role: Optional[str]) -> None:
    await store.update(paths.user_profile_path(app_id, uid), {"role": role})
    logger.info("Set role of user %s to %s", uid, role)
