from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import undefer
from classboard.models.user import User, Role
from classboard.schemas.user import UserCreate
from classboard.exceptions import EmailTakenException
from classboard.utils.security import hash_password, decode_token
from classboard.utils.logging_config import auth_logger, user_logger


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_user_by_email_with_password(self, email: str) -> User | None:
        """Same as get_user_by_email but also loads the password hash."""
        result = await self.db.execute(
            select(User)
            .options(undefer(User.password))
            .where(User.email == email)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create_user(self, user_data: UserCreate, role: Role = Role.USER) -> User:
        if await self.get_user_by_email(user_data.email):
            raise EmailTakenException()
        user = User(
            name=user_data.name,
            email=user_data.email,
            password=hash_password(user_data.password),
            role=role
        )
        self.db.add(user)
        await self.db.flush()
        user_logger.info(f"User created", extra={"user_id": str(user.id), "email": user.email})
        return user

    async def get_user_from_token(self, token: str) -> User | None:
        payload = decode_token(token)
        if not payload or payload.get("type") != "access":
            auth_logger.warning("Invalid or expired access token")
            return None
        user_id = payload.get("sub")
        if not user_id:
            auth_logger.warning("Token missing subject (user_id)")
            return None
        try:
            user_uuid = UUID(str(user_id))
        except ValueError:
            auth_logger.warning(f"Token subject is not a user id: {user_id}")
            return None
        user = await self.get_user_by_id(user_uuid)
        if user:
            auth_logger.debug(f"User retrieved from token: {user.email}")
        return user
