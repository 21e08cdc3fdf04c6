"""
Bootstrap a database: apply migrations and create (or promote) the first admin.

Usage:
    COMMUNITY_ADMIN_EMAIL=admin@example.com COMMUNITY_ADMIN_PASSWORD=... python seed_db.py
"""

import logging
import os
import sys

# Add root to pythonpath
sys.path.append(os.getcwd())

from src.adapters.auth.crypto import JWTAuthAdapter  # noqa: E402
from src.adapters.sqlite.migrator import SQLiteMigrator  # noqa: E402
from src.adapters.sqlite.repos import SQLiteUserRepo  # noqa: E402
from src.api.deps import Settings  # noqa: E402
from src.domain.entities import User, utcnow  # noqa: E402

logger = logging.getLogger("seed_db")


def seed() -> None:
    settings = Settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Seeding %s", settings.db_path)

    SQLiteMigrator(settings.db_path, settings.migrations_dir).run_migrations()

    email = os.environ.get("COMMUNITY_ADMIN_EMAIL", "admin@example.com").lower()
    password = os.environ.get("COMMUNITY_ADMIN_PASSWORD")
    if not password:
        logger.error("COMMUNITY_ADMIN_PASSWORD is not set")
        sys.exit(1)

    repo = SQLiteUserRepo(settings.db_path)
    existing = repo.get_by_email(email)
    if existing:
        if existing.role != "ADMIN":
            repo.save(existing.model_copy(update={"role": "ADMIN", "updated_at": utcnow()}))
            logger.info("Promoted %s to ADMIN", email)
        else:
            logger.info("Admin %s already exists", email)
        return

    admin = User(
        registration_number=os.environ.get("COMMUNITY_ADMIN_REGISTRATION", "ADMIN-0001"),
        fullname="Administrator",
        username=os.environ.get("COMMUNITY_ADMIN_USERNAME", "admin"),
        email=email,
        password_hash=JWTAuthAdapter(settings.secret_key).hash_password(password),
        role="ADMIN",
    )
    repo.save(admin)
    logger.info("Created admin %s", email)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    seed()
