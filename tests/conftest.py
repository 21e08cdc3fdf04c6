from pathlib import Path
from uuid import uuid4

import pytest

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.domain.entities import User
from src.domain.policy import PolicyEngine
from src.rules.loader import load_rules

ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture
def rules():
    # Load REAL rules from project root
    return load_rules(ROOT / "rules.yaml")


@pytest.fixture
def policy(rules):
    return PolicyEngine(rules)


@pytest.fixture
def db_path(tmp_path):
    """A migrated, empty SQLite database."""
    path = str(tmp_path / "community.db")
    SQLiteMigrator(path, ROOT / "migrations").run_migrations()
    return path


def make_user(role="USER", username=None, **kwargs):
    name = username or f"user{uuid4().hex[:8]}"
    return User(
        registration_number=kwargs.pop("registration_number", f"REG-{name}"),
        fullname=kwargs.pop("fullname", name.title()),
        username=name,
        email=kwargs.pop("email", f"{name}@example.com"),
        password_hash=kwargs.pop("password_hash", "hash"),
        role=role,
        **kwargs,
    )


@pytest.fixture
def admin():
    return make_user("ADMIN", "admin")


@pytest.fixture
def alice():
    return make_user("USER", "alice")


@pytest.fixture
def bob():
    return make_user("USER", "bob")


@pytest.fixture
def user_factory():
    return make_user
