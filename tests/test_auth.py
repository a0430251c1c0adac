"""Tests for admin credentials and sessions."""
from datetime import datetime, timedelta, timezone

import pytest

from core.exceptions import ConfigurationError, InvalidCredentialsError
from services.auth import (
    AdminSession,
    SessionStore,
    authenticate,
    check_credentials,
    validate_admin_credentials,
)


def test_validate_requires_both_credentials():
    with pytest.raises(ConfigurationError):
        validate_admin_credentials("", "secret")
    with pytest.raises(ConfigurationError):
        validate_admin_credentials("  ", "secret")
    with pytest.raises(ConfigurationError):
        validate_admin_credentials("admin", "")
    validate_admin_credentials("admin", "secret")


def test_check_credentials_strips_login_only():
    assert check_credentials(" admin ", "secret", "admin", "secret")
    assert not check_credentials("admin", " secret", "admin", "secret")
    assert not check_credentials("Admin", "secret", "admin", "secret")


def test_authenticate_opens_session():
    store = SessionStore(ttl_hours=1)
    session = authenticate(store, "admin ", "secret", "admin", "secret")

    assert session.login == "admin"
    assert store.get(session.token) is session
    assert session.expires_at > session.created_at


def test_authenticate_rejects_wrong_password():
    store = SessionStore()
    with pytest.raises(InvalidCredentialsError) as exc_info:
        authenticate(store, "admin", "wrong", "admin", "secret")

    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "Неверный логин или пароль"
    assert len(store) == 0


def test_revoke_and_unknown_tokens():
    store = SessionStore()
    session = store.create("admin")

    assert store.get(None) is None
    assert store.get("nope") is None
    assert store.revoke(session.token)
    assert store.get(session.token) is None
    assert not store.revoke(session.token)


def test_expired_session_is_dropped():
    store = SessionStore(ttl_hours=1)
    session = store.create("admin")
    session.expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)

    assert store.get(session.token) is None
    assert len(store) == 0


def test_purge_expired():
    store = SessionStore(ttl_hours=1)
    live = store.create("admin")
    dead = store.create("admin")
    dead.expires_at = datetime.now(timezone.utc) - timedelta(minutes=5)

    assert store.purge_expired() == 1
    assert store.get(live.token) is live


def test_create_purges_expired_sessions():
    store = SessionStore(ttl_hours=1)
    stale = store.create("admin")
    stale.expires_at = datetime.now(timezone.utc) - timedelta(minutes=5)

    fresh = store.create("admin")

    assert len(store) == 1
    assert store.get(fresh.token) is fresh


def test_session_without_ttl_never_expires():
    session = AdminSession(token="t", login="admin")
    assert not session.is_expired()
    assert session.to_dict()["expires_at"] is None
