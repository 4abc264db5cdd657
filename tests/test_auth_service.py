import asyncio

import pytest

from core.errors import (
    AlreadyExists,
    InvalidCredentials,
    InvalidInput,
    NotAuthorized,
    NotFound,
)
from models.enums import UserRole
from schemas.schema import PasswordUpdate, UserCreate, UserLogin, UserUpdate
from security.tokens import AccessTokens
from services.auth_service import AuthService


@pytest.fixture
def service(store):
    return AuthService(store)


def register(service, email="jane@example.com", password="secret123", **fields):
    return asyncio.run(
        service.register(
            UserCreate(
                email=email,
                password=password,
                first_name=fields.pop("first_name", "jane"),
                last_name=fields.pop("last_name", "doe"),
                **fields,
            )
        )
    )


def test_register_normalizes_and_hides_password(store, service):
    user = register(service, email="  Jane@Example.COM ", role=UserRole.LANDLORD)

    assert user.email == "jane@example.com"
    assert user.first_name == "Jane"
    assert user.role == UserRole.LANDLORD
    assert "hashed_password" not in user.model_dump()
    stored = store.users.get(user.id)
    assert stored.hashed_password and stored.hashed_password != "secret123"


def test_register_duplicate_email(service):
    register(service)
    with pytest.raises(AlreadyExists):
        register(service, email="JANE@example.com")


def test_password_needs_letters_and_digits():
    with pytest.raises(ValueError):
        UserCreate(
            email="a@example.com", password="123456", first_name="a", last_name="b"
        )


def test_login_issues_verifiable_token(service):
    user = register(service)

    result = asyncio.run(
        service.login(UserLogin(email="jane@example.com", password="secret123"))
    )

    assert result.user.id == user.id
    payload = asyncio.run(service.verify_token(result.token))
    assert payload["sub"] == str(user.id)
    assert payload["role"] == "tenant"


@pytest.mark.parametrize(
    "email,password",
    [("jane@example.com", "wrong123"), ("nobody@example.com", "secret123")],
)
def test_login_failures_look_the_same(service, email, password):
    register(service)

    with pytest.raises(InvalidCredentials) as exc:
        asyncio.run(service.login(UserLogin(email=email, password=password)))
    assert exc.value.detail == "Invalid email or password"


def test_tampered_token_is_rejected(service):
    user = register(service)
    forged = AccessTokens(secret_key="not-the-server-key").issue(user)

    with pytest.raises(InvalidCredentials):
        asyncio.run(service.verify_token(forged))


def test_update_user_and_email_uniqueness(service):
    jane = register(service)
    register(service, email="john@example.com", first_name="john")

    updated = asyncio.run(service.update_user(jane.id, UserUpdate(phone="555-0199")))
    assert updated.phone == "555-0199"

    with pytest.raises(AlreadyExists):
        asyncio.run(service.update_user(jane.id, UserUpdate(email="john@example.com")))
    with pytest.raises(InvalidInput):
        asyncio.run(service.update_user(jane.id, UserUpdate()))


def test_profile_update_cannot_change_role():
    with pytest.raises(ValueError):
        UserUpdate(role="admin")


def test_update_password(service):
    user = register(service)

    with pytest.raises(InvalidCredentials):
        asyncio.run(
            service.update_password(
                user.id,
                PasswordUpdate(current_password="nope", new_password="another1"),
            )
        )

    asyncio.run(
        service.update_password(
            user.id,
            PasswordUpdate(current_password="secret123", new_password="another1"),
        )
    )
    asyncio.run(service.login(UserLogin(email="jane@example.com", password="another1")))


def test_role_changes_and_deletion_are_admin_only(service, admin, landlord):
    user = register(service)

    with pytest.raises(NotAuthorized):
        asyncio.run(service.update_user_role(user.id, "admin", landlord))
    with pytest.raises(InvalidInput):
        asyncio.run(service.update_user_role(user.id, "superuser", admin))

    promoted = asyncio.run(service.update_user_role(user.id, "agent", admin))
    assert promoted.role == UserRole.AGENT
    assert [u.id for u in asyncio.run(service.get_users_by_role("agent"))] == [user.id]

    with pytest.raises(NotAuthorized):
        asyncio.run(service.delete_user(user.id, landlord))
    asyncio.run(service.delete_user(user.id, admin))
    with pytest.raises(NotFound):
        asyncio.run(service.get_user(user.id))
    with pytest.raises(NotFound):
        asyncio.run(service.delete_user(user.id, admin))


def test_users_by_unknown_role(service):
    with pytest.raises(InvalidInput):
        asyncio.run(service.get_users_by_role("owner"))


def test_roles_match_values_only(service, admin):
    user = register(service)

    with pytest.raises(InvalidInput):
        asyncio.run(service.get_users_by_role("ADMIN"))
    with pytest.raises(InvalidInput):
        asyncio.run(service.update_user_role(user.id, "ADMIN", admin))

    assert asyncio.run(service.get_user(user.id)).role == UserRole.TENANT


@pytest.mark.parametrize("weak", ["abcdefgh", "12345678"])
def test_new_password_needs_letters_and_digits(weak):
    with pytest.raises(ValueError):
        PasswordUpdate(current_password="secret123", new_password=weak)
