from pathlib import Path

import pytest

from salessync.core import config
from salessync.core.startup_checks import (
    ensure_migrations_applied,
    validate_database_environment,
    validate_jwt_secret,
)
from salessync.core.token_store import InMemoryTokenStore, RedisTokenStore


class _FakeRedis:
    def __init__(self):
        self.data = {}

    def setex(self, key, ttl, value):
        self.data[key] = (ttl, value)

    def exists(self, key):
        return 1 if key in self.data else 0

    def delete(self, *keys):
        for key in keys:
            self.data.pop(key, None)

    def scan_iter(self, match):
        prefix = match.rstrip("*")
        return [key for key in list(self.data) if key.startswith(prefix)]


def test_in_memory_token_store_revoke_and_revoke_all():
    store = InMemoryTokenStore()
    store.save(user_id=1, token_id="a", ttl_seconds=60)
    store.save(user_id=1, token_id="b", ttl_seconds=60)
    store.save(user_id=2, token_id="c", ttl_seconds=60)

    store.revoke(user_id=1, token_id="a")
    assert store.exists(user_id=1, token_id="a") is False
    assert store.exists(user_id=1, token_id="b") is True

    store.revoke_all(user_id=1)
    assert store.exists(user_id=1, token_id="b") is False
    assert store.exists(user_id=2, token_id="c") is True


def test_in_memory_token_store_expires_tokens():
    store = InMemoryTokenStore()
    store.save(user_id=1, token_id="a", ttl_seconds=0)

    assert store.exists(user_id=1, token_id="a") is False


def test_redis_token_store_keys_tokens_per_user():
    client = _FakeRedis()
    store = RedisTokenStore(client)
    store.save(user_id=5, token_id="abc", ttl_seconds=120)
    store.save(user_id=5, token_id="def", ttl_seconds=120)
    store.save(user_id=51, token_id="ghi", ttl_seconds=120)

    assert client.data["refresh_token:5:abc"] == (120, "1")
    assert store.exists(user_id=5, token_id="abc") is True

    store.revoke_all(user_id=5)
    assert store.exists(user_id=5, token_id="def") is False
    assert store.exists(user_id=51, token_id="ghi") is True


def test_sqlite_is_rejected_in_production(monkeypatch):
    monkeypatch.setattr(config, "IS_PROD", True)

    with pytest.raises(RuntimeError, match="SQLite is forbidden"):
        validate_database_environment("sqlite:///./salessync.db")

    validate_database_environment("postgresql://db/salessync")


def test_default_jwt_secret_only_allowed_outside_production(monkeypatch):
    validate_jwt_secret(config.DEFAULT_JWT_SECRET)

    monkeypatch.setattr(config, "IS_PROD", True)
    with pytest.raises(RuntimeError, match="JWT_SECRET must be set"):
        validate_jwt_secret(config.DEFAULT_JWT_SECRET)
    with pytest.raises(RuntimeError, match="at least 32 characters"):
        validate_jwt_secret("too-short")
    validate_jwt_secret("x" * 40)


def test_migration_check_is_skipped_in_tests():
    ensure_migrations_applied(engine=None, alembic_config_path=Path("/does/not/exist"))


def test_migration_check_requires_alembic_config(monkeypatch):
    monkeypatch.setattr(config, "IS_TEST", False)

    with pytest.raises(RuntimeError, match="alembic config not found"):
        ensure_migrations_applied(engine=None, alembic_config_path=Path("/does/not/exist"))
