"""Document store layout, rooted at artifacts/{app_id}."""
from __future__ import annotations

USER_APPLICATIONS = "loanApplications"


def users_collection(app_id: str) -> str:
    return f"artifacts/{app_id}/users"


def user_profile_path(app_id: str, user_id: str) -> str:
    return f"{users_collection(app_id)}/{user_id}"


def user_applications_collection(app_id: str, user_id: str) -> str:
    return f"{user_profile_path(app_id, user_id)}/{USER_APPLICATIONS}"


def user_application_path(app_id: str, user_id: str, application_id: str) -> str:
    return f"{user_applications_collection(app_id, user_id)}/{application_id}"


def global_applications_collection(app_id: str) -> str:
    return f"artifacts/{app_id}/public/data/allApplications"


def global_application_path(app_id: str, application_id: str) -> str:
    return f"{global_applications_collection(app_id)}/{application_id}"


def parse_user_application_path(app_id: str, path: str) -> tuple[str, str] | None:
    """Return (user_id, application_id) for a user copy path of this app, else None."""
    prefix = f"{users_collection(app_id)}/"
    path = path.strip("/")
    if not path.startswith(prefix):
        return None
    parts = path[len(prefix):].split("/")
    if len(parts) != 3 or parts[1] != USER_APPLICATIONS:
        return None
    return parts[0], parts[2]
