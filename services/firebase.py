"""Process-wide Firebase Admin app, initialized on first use."""
from __future__ import annotations

import logging
import threading

import firebase_admin
from firebase_admin import credentials

from config import Settings

logger = logging.getLogger(__name__)

_lock = threading.Lock()


def get_firebase_app(settings: Settings) -> firebase_admin.App:
    """Return the default Firebase app, creating it from the service account on first call."""
    with _lock:
        try:
            return firebase_admin.get_app()
        except ValueError:
            pass
        options = {}
        if settings.firebase_project_id:
            options["projectId"] = settings.firebase_project_id
        cred = credentials.Certificate(settings.firebase_service_account_path)
        logger.info(
            "Initializing Firebase app from %s (project=%s)",
            settings.firebase_service_account_path,
            settings.firebase_project_id or "<from credentials>",
        )
        return firebase_admin.initialize_app(cred, options)
