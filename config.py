from typing import Literal

from pydantic import PrivateAttr
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Loan Portal API"
    debug: bool = False
    log_level: str = "INFO"

    store_backend: Literal["firestore", "sql"] = "firestore"
    database_url: str = "sqlite+aiosqlite:///./loan_portal.db"

    firebase_service_account_path: str = "./serviceAccountKey.json"
    firebase_project_id: str | None = None
    app_id: str = "gradious-loan-app-default"

    cors_origins: str = "*"
    port: int = 3000
    static_dir: str = "public"

    # False reproduces the legacy behaviour where any signed-in user is an admin.
    admin_role_required: bool = True

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    _is_sqlite: bool = PrivateAttr(default=False)

    def model_post_init(self, __context: object) -> None:
        _scheme = self.database_url.split(":")[0].lower()
        object.__setattr__(self, "_is_sqlite", "sqlite" in _scheme)

    @property
    def is_sqlite(self) -> bool:
        return self._is_sqlite


settings = Settings()
