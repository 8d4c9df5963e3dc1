import uuid
from datetime import timedelta

import pytest
from sqlalchemy import inspect

from classboard.models.user import Role
from classboard.schemas.user import UserCreate
from classboard.services.user_service import UserService
from classboard.exceptions import EmailTakenException
from classboard.utils.security import create_access_token


@pytest.fixture
def service(db_session):
    return UserService(db_session)


async def test_lookup_by_id_and_email(service, create_user):
    user = await create_user(name="Ada", email="ada@example.com")

    assert (await service.get_user_by_id(user.id)).email == "ada@example.com"
    assert (await service.get_user_by_email("ada@example.com")).id == user.id
    assert await service.get_user_by_id(uuid.uuid4()) is None
    assert await service.get_user_by_email("nobody@example.com") is None


async def test_new_users_get_user_role(create_user):
    user = await create_user()
    assert user.role == Role.USER
    assert not user.is_admin


async def test_password_is_hashed_and_not_loaded_by_default(service, create_user, db_session):
    await create_user(email="grace@example.com")
    db_session.expunge_all()

    user = await service.get_user_by_email("grace@example.com")
    assert "password" in inspect(user).unloaded

    with_password = await service.get_user_by_email_with_password("grace@example.com")
    assert with_password.password.startswith("$2b$")
    assert with_password.password != "TestPassword123!"


async def test_duplicate_email_rejected(service, create_user):
    await create_user(email="dup@example.com")

    with pytest.raises(EmailTakenException) as exc_info:
        await service.create_user(UserCreate(name="Again", email="dup@example.com", password="secret123"))
    assert exc_info.value.status_code == 409


async def test_user_from_token(service, create_user):
    user = await create_user()
    token = create_access_token({"sub": str(user.id)})

    assert (await service.get_user_from_token(token)).id == user.id


@pytest.mark.parametrize("claims", [
    {"sub": "not-a-uuid"},
    {"sub": str(uuid.uuid4())},
    {},
])
async def test_user_from_token_rejects_bad_subjects(service, claims):
    assert await service.get_user_from_token(create_access_token(claims)) is None


async def test_user_from_expired_or_garbage_token(service, create_user):
    user = await create_user()
    expired = create_access_token({"sub": str(user.id)}, expires_delta=timedelta(minutes=-5))

    assert await service.get_user_from_token(expired) is None
    assert await service.get_user_from_token("invalid.token.here") is None
