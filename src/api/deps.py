import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from src.adapters.auth.crypto import JWTAuthAdapter
from src.adapters.clock import SystemClock
from src.adapters.fs.blobstore import LocalBlobStore
from src.adapters.sqlite.repos import (
    SQLiteCommentRepo,
    SQLiteContentRepo,
    SQLiteLikeRepo,
    SQLiteUserRepo,
)
from src.domain.entities import User
from src.domain.errors import Unauthenticated
from src.domain.policy import PolicyEngine
from src.rules.loader import load_rules
from src.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("COMMUNITY_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "community.db")
        self.blobs_dir = self.data_dir / "blobs"
        self.public_blob_url = os.environ.get("COMMUNITY_PUBLIC_BLOB_URL", "/blobs")
        self.db_timeout = float(os.environ.get("COMMUNITY_DB_TIMEOUT", "5.0"))
        self.rules_path = Path(
            os.environ.get("COMMUNITY_RULES_PATH", str(self.base_dir / "rules.yaml"))
        )
        self.migrations_dir = self.base_dir / "migrations"
        self.secret_key = os.environ.get("COMMUNITY_SECRET_KEY", "dev-secret-unsafe")


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def _load_rules_cached(path: Path) -> Rules:
    return load_rules(path)


def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return _load_rules_cached(settings.rules_path)


# --- Repos ---
def get_user_repo(settings: Settings = Depends(get_settings)) -> SQLiteUserRepo:
    return SQLiteUserRepo(settings.db_path, timeout=settings.db_timeout)


def get_content_repo(settings: Settings = Depends(get_settings)) -> SQLiteContentRepo:
    return SQLiteContentRepo(settings.db_path, timeout=settings.db_timeout)


def get_comment_repo(settings: Settings = Depends(get_settings)) -> SQLiteCommentRepo:
    return SQLiteCommentRepo(settings.db_path, timeout=settings.db_timeout)


def get_like_repo(settings: Settings = Depends(get_settings)) -> SQLiteLikeRepo:
    return SQLiteLikeRepo(settings.db_path, timeout=settings.db_timeout)


# --- Services ---
def get_policy(rules: Rules = Depends(get_rules)) -> PolicyEngine:
    return PolicyEngine(rules)


def get_blob_store(settings: Settings = Depends(get_settings)) -> LocalBlobStore:
    return LocalBlobStore(base_path=str(settings.blobs_dir), public_url=settings.public_blob_url)


# Adapters needed for component injection
def get_auth_adapter(settings: Settings = Depends(get_settings)) -> JWTAuthAdapter:
    return JWTAuthAdapter(settings.secret_key)


# Time adapter for deterministic time operations
_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


# --- Auth ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/users/login", auto_error=False)


def _resolve_token(request: Request, header_token: str | None) -> str | None:
    # An explicit Authorization header wins over the HttpOnly cookie
    if header_token:
        return header_token
    cookie_token = request.cookies.get("access_token")
    if cookie_token:
        return cookie_token.removeprefix("Bearer ").strip() or None
    return None


async def get_optional_user(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    auth: JWTAuthAdapter = Depends(get_auth_adapter),
) -> User | None:
    """The caller, or None for anonymous or unusable credentials."""
    raw = _resolve_token(request, token)
    if not raw:
        return None

    user_id = auth.validate_token(raw)
    if user_id is None:
        return None
    return user_repo.get_by_id(user_id)


async def get_current_user(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    auth: JWTAuthAdapter = Depends(get_auth_adapter),
) -> User:
    raw = _resolve_token(request, token)
    if not raw:
        raise Unauthenticated("Not authenticated")

    user_id = auth.validate_token(raw)
    if user_id is None:
        raise Unauthenticated("Invalid token")

    user = user_repo.get_by_id(user_id)
    if not user:
        raise Unauthenticated("User not found")
    return user
