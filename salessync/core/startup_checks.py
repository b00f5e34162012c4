from __future__ import annotations

import logging
from pathlib import Path

from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from salessync.core import config

logger = logging.getLogger(__name__)
MIGRATIONS_PREFIX = "[MIGRATIONS]"
SECURITY_PREFIX = "[SECURITY]"
MIN_JWT_SECRET_LENGTH = 32


def validate_database_environment(database_url: str | None = None) -> None:
    url = config.DATABASE_URL if database_url is None else database_url
    if config.IS_PROD and url.startswith("sqlite"):
        logger.critical("%s SQLite is forbidden in production", MIGRATIONS_PREFIX)
        raise RuntimeError("SQLite is forbidden in production environment")


def validate_jwt_secret(secret: str | None = None) -> None:
    value = config.JWT_SECRET if secret is None else secret
    if not (config.IS_PROD or config.IS_STAGE):
        if value == config.DEFAULT_JWT_SECRET:
            logger.warning("%s using the development JWT secret", SECURITY_PREFIX)
        return

    if not value or value == config.DEFAULT_JWT_SECRET:
        logger.critical("%s JWT_SECRET is not configured", SECURITY_PREFIX)
        raise RuntimeError("JWT_SECRET must be set outside development")
    if len(value) < MIN_JWT_SECRET_LENGTH:
        logger.critical("%s JWT_SECRET shorter than %s characters", SECURITY_PREFIX, MIN_JWT_SECRET_LENGTH)
        raise RuntimeError(f"JWT_SECRET must be at least {MIN_JWT_SECRET_LENGTH} characters")


def ensure_migrations_applied(*, engine: Engine, alembic_config_path: Path) -> None:
    if config.IS_TEST:
        logger.info("%s skipped migration check in test environment", MIGRATIONS_PREFIX)
        return

    if not alembic_config_path.exists():
        logger.critical("%s alembic config not found path=%s", MIGRATIONS_PREFIX, alembic_config_path)
        raise RuntimeError("alembic config not found")

    alembic_cfg = Config(str(alembic_config_path))
    script_directory = ScriptDirectory.from_config(alembic_cfg)
    expected_heads = set(script_directory.get_heads())

    with engine.connect() as connection:
        inspector = inspect(connection)
        if "alembic_version" not in inspector.get_table_names():
            logger.critical("%s alembic_version table missing", MIGRATIONS_PREFIX)
            raise RuntimeError("Database has no migration state")

        current_rows = connection.exec_driver_sql("SELECT version_num FROM alembic_version").fetchall()

    current_heads = {row[0] for row in current_rows if row and row[0]}
    if current_heads != expected_heads:
        logger.critical(
            "%s pending migration detected current=%s expected=%s",
            MIGRATIONS_PREFIX,
            sorted(current_heads),
            sorted(expected_heads),
        )
        raise RuntimeError("Pending migrations detected")

    logger.info("%s migration state verified", MIGRATIONS_PREFIX)
