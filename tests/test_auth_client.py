"""
Tests for the authentication provider
"""

import pytest
from datetime import datetime, timedelta, timezone
import jwt
from taskwise.api.auth_client import LocalAuthProvider
from taskwise.utils.error_handler import (
    AuthError,
    EmailAlreadyInUseError,
    ValidationError,
    WrongPasswordError,
)

SECRET = "test-secret"


@pytest.fixture
def auth(store):
    return LocalAuthProvider(store, secret=SECRET, algorithm="HS256", expire_minutes=60)


@pytest.mark.asyncio
async def test_sign_up_signs_in(auth):
    seen = []
    auth.on_auth_state_changed(seen.append)

    session = await auth.sign_up("Ada", "Ada@TaskWise.dev", "secret1")

    assert session.user.display_name == "Ada"
    assert session.user.email == "ada@taskwise.dev"
    assert auth.current_user == session.user
    assert seen == [None, session.user]
    assert (await auth.verify_token(session.token)).id == session.user.id


@pytest.mark.asyncio
async def test_sign_up_requires_name(auth):
    with pytest.raises(ValidationError) as exc_info:
        await auth.sign_up("  ", "ada@taskwise.dev", "secret1")
    assert exc_info.value.field == "display_name"


@pytest.mark.asyncio
async def test_sign_up_short_password(auth):
    with pytest.raises(ValidationError):
        await auth.sign_up("Ada", "ada@taskwise.dev", "123")


@pytest.mark.asyncio
async def test_sign_up_duplicate_email(auth):
    await auth.sign_up("Ada", "ada@taskwise.dev", "secret1")
    with pytest.raises(EmailAlreadyInUseError):
        await auth.sign_up("Ada Again", "ADA@taskwise.dev", "secret2")


@pytest.mark.asyncio
async def test_sign_in_and_out(auth):
    await auth.sign_up("Ada", "ada@taskwise.dev", "secret1")
    auth.sign_out()
    assert auth.current_user is None

    session = await auth.sign_in("ada@taskwise.dev", "secret1")
    assert auth.current_user == session.user


@pytest.mark.asyncio
async def test_sign_in_wrong_password(auth):
    await auth.sign_up("Ada", "ada@taskwise.dev", "secret1")
    with pytest.raises(WrongPasswordError):
        await auth.sign_in("ada@taskwise.dev", "wrong-password")


@pytest.mark.asyncio
async def test_sign_in_unknown_email(auth):
    with pytest.raises(AuthError):
        await auth.sign_in("nobody@taskwise.dev", "secret1")


def test_unsubscribe_listener(auth):
    seen = []
    unsubscribe = auth.on_auth_state_changed(seen.append)
    unsubscribe()
    auth.sign_out()
    assert seen == [None]


@pytest.mark.asyncio
async def test_change_password(auth):
    await auth.sign_up("Ada", "ada@taskwise.dev", "secret1")

    await auth.change_password("secret1", "better-secret", "better-secret")

    auth.sign_out()
    await auth.sign_in("ada@taskwise.dev", "better-secret")
    with pytest.raises(WrongPasswordError):
        await auth.sign_in("ada@taskwise.dev", "secret1")


@pytest.mark.asyncio
async def test_change_password_rules(auth):
    await auth.sign_up("Ada", "ada@taskwise.dev", "secret1")

    with pytest.raises(ValidationError) as exc_info:
        await auth.change_password("secret1", "short", "short")
    assert exc_info.value.field == "new_password"

    with pytest.raises(ValidationError) as exc_info:
        await auth.change_password("secret1", "better-secret", "other-secret")
    assert exc_info.value.field == "confirm_password"

    with pytest.raises(WrongPasswordError) as exc_info:
        await auth.change_password("wrong1", "better-secret", "better-secret")
    assert exc_info.value.message == "The current password you entered is incorrect."


@pytest.mark.asyncio
async def test_change_password_requires_user(auth):
    with pytest.raises(AuthError):
        await auth.change_password("secret1", "better-secret", "better-secret")


@pytest.mark.asyncio
async def test_verify_expired_token(auth):
    session = await auth.sign_up("Ada", "ada@taskwise.dev", "secret1")
    expired = jwt.encode(
        {"sub": session.user.id, "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
        SECRET,
        algorithm="HS256",
    )
    with pytest.raises(AuthError, match="expired"):
        await auth.verify_token(expired)


@pytest.mark.asyncio
async def test_verify_garbage_token(auth):
    with pytest.raises(AuthError):
        await auth.verify_token("not-a-token")


@pytest.mark.asyncio
async def test_register_and_authenticate_keep_current_user(auth):
    await auth.sign_up("Ada", "ada@taskwise.dev", "secret1")
    ada = auth.current_user

    bob = await auth.register("Bob", "bob@taskwise.dev", "secret1")
    assert auth.current_user == ada

    session = await auth.authenticate("bob@taskwise.dev", "secret1")
    assert session.user == bob.user
    assert auth.current_user == ada
    assert (await auth.verify_token(session.token)).id == bob.user.id
