from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.pagination import PaginatedResponse, PaginationParams, Paginator
from app.core.security import get_password_hash, needs_rehash, verify_password
from app.core.tokens import TokenManager
from app.core.utils import LoggerMixin
from app.models.user_model import User
from app.repositories.user_repo import UserRepository
from app.schemas.user_schemas import (
    UserCreateSchema,
    UserResponseSchema,
    UserUpdateSchema,
)


ADMIN_ONLY_FIELDS = ("role", "is_active")


class UserService(LoggerMixin):
    """Service layer for user business logic."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = UserRepository(self.db)

    async def create_user(
        self, user_data: UserCreateSchema, created_by: Optional[int] = None
    ) -> User:
        """
        Create a new user from Pydantic schema.

        Args:
            user_data: UserCreateSchema with user creation data
            created_by: Id of the admin creating the account

        Returns:
            User: Created ORM user model

        Raises:
            HTTPException: 409 if the email is already registered
        """
        if await self.repo.get_user_by_email(user_data.email):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already exists",
            )

        user_dict = user_data.model_dump()
        user_dict["password"] = get_password_hash(user_data.password)
        user_dict["created_by"] = created_by

        try:
            return await self.repo.create(User(**user_dict))
        except IntegrityError:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already exists",
            )

    async def get_user(self, user_id: int) -> User:
        """Deactivated users are still returned here; only lists hide them."""
        user = await self.repo.get_by_id(user_id)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found",
            )
        return user

    async def list_users(
        self, params: PaginationParams, search: Optional[str] = None
    ) -> PaginatedResponse:
        return await Paginator.paginate(
            self.db, self.repo.list_query(search), params, UserResponseSchema
        )

    async def update_user(
        self, user_id: int, user_data: UserUpdateSchema, acting_user: User
    ) -> User:
        """
        Apply a partial update.

        Only admins may change ``role`` or ``isActive``; a supplied password is
        re-hashed before it is stored.
        """
        user = await self.get_user(user_id)
        update_data = user_data.model_dump(exclude_unset=True)

        restricted = [field for field in ADMIN_ONLY_FIELDS if field in update_data]
        if restricted and not acting_user.is_admin:
            self.log_security_event(
                {
                    "event": "restricted_user_field_update",
                    "acting_user_id": acting_user.id,
                    "target_user_id": user_id,
                    "fields": restricted,
                }
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only administrators can change role or active status",
            )

        if update_data.get("email") and update_data["email"] != user.email:
            existing = await self.repo.get_user_by_email(update_data["email"])
            if existing and existing.id != user.id:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Email already exists",
                )

        if update_data.get("password"):
            update_data["password"] = get_password_hash(update_data["password"])

        try:
            return await self.repo.update(user, update_data)
        except IntegrityError:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already exists",
            )

    async def delete_user(self, user_id: int) -> User:
        user = await self.get_user(user_id)
        return await self.repo.remove(user)

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        """
        Check credentials.

        Returns:
            The user when the email exists, the account is active and the
            password verifies; otherwise None
        """
        user = await self.repo.get_user_by_email(email)
        if not user or not user.is_active:
            return None
        if not verify_password(password, user.password):
            return None

        if needs_rehash(user.password):
            user.password = get_password_hash(password)
            user = await self.repo.save(user)
        return user

    async def login_user(self, email: str, password: str, ip_address: Optional[str] = None) -> str:
        """
        Authenticate and issue an access token.

        Raises:
            HTTPException: 401 "Invalid credentials"
        """
        user = await self.authenticate(email, password)
        if not user:
            self.log_security_event(
                {
                    "event": "failed_login_attempt",
                    "email": email,
                    "ip_address": ip_address,
                }
            )
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid credentials",
            )

        self.log_info({"event": "successful_login", "user_id": user.id})
        return TokenManager.create_access_token(
            {"sub": user.id, "email": user.email, "role": user.role.value}
        )
