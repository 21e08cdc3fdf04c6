import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import SQLiteUserRepo
from src.api.deps import get_rules, get_settings, get_user_repo
from src.api.errors import register_exception_handlers
from src.api.schemas import ApiResponse, ok
from src.rules.loader import load_rules
from src.rules.models import Rules

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Honour test overrides of the settings provider
    settings = app.dependency_overrides.get(get_settings, get_settings)()

    # Load rules and validate on startup (fail-fast)
    try:
        load_rules(settings.rules_path)
    except (FileNotFoundError, ValueError) as e:
        logger.critical("Rules load failed: %s", e)
        sys.exit(1)

    SQLiteMigrator(
        settings.db_path, settings.migrations_dir, timeout=settings.db_timeout
    ).run_migrations()

    yield
    # Shutdown cleanup if needed


app = FastAPI(
    title="Community Hub API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

register_exception_handlers(app)

# --- Routers ---
from src.api.routes import (  # noqa: E402
    blobs,
    blogs,
    comments,
    events,
    likes,
    projects,
    users,
)

API_PREFIX = "/api/v1"

app.include_router(users.router, prefix=f"{API_PREFIX}/users", tags=["Users"])
app.include_router(blogs.router, prefix=f"{API_PREFIX}/blogs", tags=["Blogs"])
app.include_router(projects.router, prefix=f"{API_PREFIX}/projects", tags=["Projects"])
app.include_router(events.router, prefix=f"{API_PREFIX}/events", tags=["Events"])
app.include_router(likes.router, prefix=f"{API_PREFIX}/likes", tags=["Likes"])
app.include_router(comments.router, prefix=f"{API_PREFIX}/comments", tags=["Comments"])
app.include_router(blobs.router, prefix="/blobs", tags=["Blobs"])


# CORS (Allow Frontend)
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", response_model=ApiResponse)
def health_check() -> ApiResponse:
    """Health check endpoint."""
    return ok({"status": "ok", "service": "api"}, "Healthy")


@app.get("/health/ready", response_model=ApiResponse)
def readiness_check(
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    rules: Rules = Depends(get_rules),
) -> ApiResponse:
    """Database reachable and rules loaded."""
    user_repo.ping()
    return ok({"status": "ready", "rulesVersion": rules.project.rules_version}, "Ready")
