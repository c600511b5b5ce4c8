"""
Identity provider contract and the Firebase Authentication implementation.
The Admin SDK is blocking, so calls are pushed to the threadpool.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from fastapi.concurrency import run_in_threadpool
from firebase_admin import auth

from config import Settings
from services.errors import EmailAlreadyRegistered, InvalidSignupData, InvalidToken, RequestFailed
from services.firebase import get_firebase_app

logger = logging.getLogger(__name__)


class IdentityProvider(ABC):
    @abstractmethod
    async def create_user(self, email: str, password: str, phone_number: str) -> str:
        """Create an account and return its uid."""

    @abstractmethod
    async def delete_user(self, uid: str) -> None:
        ...

    @abstractmethod
    async def verify_token(self, token: str) -> dict[str, Any]:
        """Verify a bearer token and return its claims; "uid" holds the subject."""


class FirebaseIdentityProvider(IdentityProvider):
    def __init__(self, settings: Settings):
        self._settings = settings

    async def create_user(self, email: str, password: str, phone_number: str) -> str:
        app = get_firebase_app(self._settings)
        try:
            record = await run_in_threadpool(
                auth.create_user,
                email=email,
                password=password,
                phone_number=phone_number,
                app=app,
            )
        except auth.EmailAlreadyExistsError as e:
            raise EmailAlreadyRegistered() from e
        except auth.PhoneNumberAlreadyExistsError as e:
            raise InvalidSignupData("Mobile number already registered.") from e
        except ValueError as e:
            # The SDK validates email, password and E.164 phone format locally.
            raise InvalidSignupData(str(e)) from e
        return record.uid

    async def delete_user(self, uid: str) -> None:
        await run_in_threadpool(auth.delete_user, uid, app=get_firebase_app(self._settings))

    async def verify_token(self, token: str) -> dict[str, Any]:
        app = get_firebase_app(self._settings)
        try:
            return await run_in_threadpool(auth.verify_id_token, token, app=app)
        except (ValueError, auth.InvalidIdTokenError, auth.UserDisabledError) as e:
            logger.warning("Token verification failed: %s", e)
            raise InvalidToken() from e
        except auth.CertificateFetchError as e:
            logger.error("Could not fetch token signing certificates: %s", e)
            raise RequestFailed("Identity provider unavailable", str(e)) from e
