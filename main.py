import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse

from config import Settings, settings
from api.accounts import router as accounts_router
from api.admin import router as admin_router
from api.applications import router as applications_router
from api.errors import register_exception_handlers
from services.backends import build_identity, build_store

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent


def _static_root(app_settings: Settings) -> Path:
    root = Path(app_settings.static_dir)
    return root if root.is_absolute() else BASE_DIR / root


def create_app(app_settings: Settings | None = None) -> FastAPI:
    app_settings = app_settings or settings
    logging.basicConfig(
        level=app_settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = build_store(app_settings)
        await store.init()
        app.state.store = store
        app.state.identity = build_identity(app_settings)
        logger.info("Using %s store for app %s", app_settings.store_backend, app_settings.app_id)
        yield
        await store.close()

    app = FastAPI(
        title=app_settings.app_name,
        description="Loan application, status and admin approval API",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = app_settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins.split(","),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(accounts_router)
    app.include_router(applications_router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    static_root = _static_root(app_settings)

    # Registered last so it only sees paths no API route matched.
    @app.get("/{full_path:path}", include_in_schema=False)
    async def static_fallback(full_path: str):
        root = static_root.resolve()
        candidate = (root / full_path).resolve()
        if full_path and candidate.is_file() and root in candidate.parents:
            return FileResponse(candidate)
        index = root / "index.html"
        if index.is_file():
            return FileResponse(index)
        raise HTTPException(status_code=404, detail="Not found")

    return app


app = create_app()
