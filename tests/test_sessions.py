"""Session manager, credential store and auth service tests."""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from listkeeper.auth.credentials import CredentialStore
from listkeeper.auth.identity import UserId
from listkeeper.auth.sessions import SessionManager, hash_token
from listkeeper.db.models import Session, User, utcnow
from listkeeper.errors import (
    AuthenticationError,
    AutoLoginFailed,
    InvalidCredentials,
    ValidationError,
)
from listkeeper.services.auth_service import AuthService

PASSWORD = "password-123"


@pytest.fixture
async def user_id(db_session) -> UserId:
    user = await CredentialStore(db_session).register("Ada", "ada@example.com", PASSWORD)
    await db_session.commit()
    return UserId(user.id)


@pytest.fixture
def sessions(db_session):
    return SessionManager(db_session)


async def _row(db, token) -> Session | None:
    result = await db.execute(select(Session).where(Session.token_hash == hash_token(token)))
    return result.scalars().first()


# ═══════════════════════════════════════════════════════════
# Credential store
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_password_is_stored_hashed(db_session, user_id):
    user = await db_session.get(User, user_id)
    assert user.password_hash != PASSWORD
    assert user.password_hash.startswith("$2")


@pytest.mark.asyncio
async def test_verify(db_session, user_id):
    store = CredentialStore(db_session)
    assert await store.verify("ada@example.com", PASSWORD) == user_id
    assert await store.verify("ada@example.com", "wrong-password") is None
    assert await store.verify("nobody@example.com", PASSWORD) is None


@pytest.mark.asyncio
async def test_register_validation(db_session, user_id):
    store = CredentialStore(db_session)

    with pytest.raises(ValidationError) as exc:
        await store.register("Ada again", "ada@example.com", PASSWORD)
    assert exc.value.errors == {"email": ["The email has already been taken."]}

    with pytest.raises(ValidationError) as exc:
        await store.register("", "x@example.com", "short")
    assert set(exc.value.errors) == {"name", "password"}


@pytest.mark.asyncio
async def test_register_race_on_same_email_is_a_validation_error(db_session, user_id, monkeypatch):
    """The unique index decides when two sign-ups both pass the lookup."""

    async def _not_found(self, email):
        return None

    monkeypatch.setattr(CredentialStore, "_find_by_email", _not_found)

    with pytest.raises(ValidationError) as exc:
        await CredentialStore(db_session).register("Ada twin", "ada@example.com", PASSWORD)
    assert exc.value.errors == {"email": ["The email has already been taken."]}

    count = await db_session.scalar(
        select(func.count()).select_from(User).where(User.email == "ada@example.com")
    )
    assert count == 1


# ═══════════════════════════════════════════════════════════
# Session manager
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_login_and_resolve(sessions, user_id):
    token = await sessions.login(user_id)
    assert await sessions.resolve(token) == user_id


@pytest.mark.asyncio
async def test_resolve_unknown_or_missing_token(sessions):
    assert await sessions.resolve("nope") is None
    assert await sessions.resolve(None) is None
    assert await sessions.resolve("") is None


@pytest.mark.asyncio
async def test_token_is_not_stored_in_clear(db_session, sessions, user_id):
    token = await sessions.login(user_id)
    rows = (await db_session.execute(select(Session))).scalars().all()
    assert [r.token_hash for r in rows] == [hash_token(token)]
    assert all(r.token_hash != token for r in rows)


@pytest.mark.asyncio
async def test_logins_are_concurrent(sessions, user_id):
    plain = await sessions.login(user_id, remember=False)
    remembered = await sessions.login(user_id, remember=True)
    assert plain != remembered

    assert await sessions.resolve(plain) == user_id
    assert await sessions.resolve(remembered) == user_id

    await sessions.logout(plain)
    assert await sessions.resolve(plain) is None
    assert await sessions.resolve(remembered) == user_id


@pytest.mark.asyncio
async def test_regenerate_invalidates_old_token(sessions, user_id):
    old = await sessions.login(user_id)
    new = await sessions.regenerate(old)

    assert new != old
    assert await sessions.resolve(old) is None
    assert await sessions.resolve(new) == user_id


@pytest.mark.asyncio
async def test_regenerate_keeps_csrf_token(sessions, user_id):
    old = await sessions.login(user_id, csrf_token="guest-token")
    new = await sessions.regenerate(old)
    assert await sessions.csrf_token(new) == "guest-token"


@pytest.mark.asyncio
async def test_regenerate_dead_session_fails(sessions):
    with pytest.raises(AuthenticationError):
        await sessions.regenerate("not-a-session")


@pytest.mark.asyncio
async def test_logout_is_idempotent_and_rotates_csrf(sessions, user_id):
    token = await sessions.login(user_id, csrf_token="before")
    first = await sessions.logout(token)
    second = await sessions.logout(token)
    third = await sessions.logout(None)

    assert first != "before"
    assert len({first, second, third}) == 3
    assert await sessions.csrf_token(token) is None


@pytest.mark.asyncio
async def test_login_issues_csrf_token_when_guest_has_none(sessions, user_id):
    token = await sessions.login(user_id)
    csrf = await sessions.csrf_token(token)
    assert csrf and len(csrf) >= 32


@pytest.mark.asyncio
async def test_expired_session_does_not_resolve_and_is_dropped(db_session, sessions, user_id):
    token = await sessions.login(user_id)
    row = await _row(db_session, token)
    row.expires_at = utcnow() - timedelta(minutes=1)
    await db_session.commit()

    assert await sessions.resolve(token) is None
    db_session.expunge_all()
    assert await _row(db_session, token) is None


@pytest.mark.asyncio
async def test_purge_expired(db_session, sessions, user_id):
    live = await sessions.login(user_id)
    dead = await sessions.login(user_id)
    row = await _row(db_session, dead)
    row.expires_at = utcnow() - timedelta(seconds=1)
    await db_session.commit()

    assert await sessions.purge_expired() == 1
    assert await sessions.resolve(live) == user_id
    assert await sessions.purge_expired() == 0


# ═══════════════════════════════════════════════════════════
# Auth service
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_register_signs_the_user_in(db_session):
    svc = AuthService(db_session)
    user, token = await svc.register(
        "Grace", "grace@example.com", PASSWORD, password_confirmation=PASSWORD
    )
    assert user.email == "grace@example.com"
    assert await svc.sessions.resolve(token) == user.id


@pytest.mark.asyncio
async def test_register_fails_loudly_when_auto_login_fails(db_session, monkeypatch):
    async def _never(self, email, password):
        return None

    monkeypatch.setattr(CredentialStore, "verify", _never)

    with pytest.raises(AutoLoginFailed):
        await AuthService(db_session).register("Lin", "lin@example.com", PASSWORD)


@pytest.mark.asyncio
async def test_auto_login_failure_is_a_server_error(make_client, monkeypatch):
    async def _never(self, email, password):
        return None

    monkeypatch.setattr(CredentialStore, "verify", _never)
    ac = await make_client()
    r = await ac.post(
        "/register",
        json={"name": "Lin", "email": "lin@example.com", "password": PASSWORD},
    )
    assert r.status_code == 500
    assert r.json() == {"message": "Registration succeeded but automatic login failed."}


@pytest.mark.asyncio
async def test_login_invalid_credentials(db_session, user_id):
    svc = AuthService(db_session)
    with pytest.raises(InvalidCredentials):
        await svc.login("ada@example.com", "bad-password")
    with pytest.raises(InvalidCredentials):
        await svc.login("ghost@example.com", PASSWORD)


@pytest.mark.asyncio
async def test_login_regenerates_presented_session_of_same_user(db_session, user_id):
    svc = AuthService(db_session)
    _, first = await svc.login("ada@example.com", PASSWORD)
    _, second = await svc.login("ada@example.com", PASSWORD, current_token=first)

    assert first != second
    assert await svc.sessions.resolve(first) is None
    assert await svc.sessions.resolve(second) == user_id


@pytest.mark.asyncio
async def test_login_drops_presented_session_of_other_user(db_session, user_id):
    svc = AuthService(db_session)
    other, other_token = await svc.register("Bo", "bo@example.com", PASSWORD)

    _, token = await svc.login("ada@example.com", PASSWORD, current_token=other_token)
    assert await svc.sessions.resolve(other_token) is None
    assert await svc.sessions.resolve(token) == user_id


@pytest.mark.asyncio
async def test_logout_without_session_is_noop(db_session):
    csrf = await AuthService(db_session).logout(None)
    assert csrf
