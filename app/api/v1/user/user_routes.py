from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_db
from app.core.pagination import PaginationParams, get_pagination_params
from app.core.permission_checker import require_admin, require_authenticated
from app.core.responses import envelope_response
from app.core.utils import logger
from app.models.user_model import User
from app.schemas.user_schemas import (
    UserCreateSchema,
    UserResponseSchema,
    UserUpdateSchema,
)
from app.services.user_service import UserService


router = APIRouter(prefix="/users", tags=["users"])


@router.post("/create", status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreateSchema,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin()),
):
    """
    Create a staff account (admin only).

    Args:
        user_data: User creation data
        db: Database session
        current_user: Authenticated admin

    Returns:
        Envelope with the created user, password excluded
    """
    service = UserService(db)
    try:
        user = await service.create_user(user_data, created_by=current_user.id)

        logger.log_info(
            {
                "event": "user_created",
                "user_id": user.id,
                "role": user.role.value,
                "created_by": current_user.id,
            }
        )
        return envelope_response(
            status.HTTP_201_CREATED,
            "User created successfully",
            UserResponseSchema.model_validate(user),
        )

    except HTTPException:
        raise

    except Exception as e:
        logger.log_error(
            {
                "event": "user_creation_error",
                "error": str(e),
                "error_type": type(e).__name__,
                "created_by": current_user.id,
            },
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while creating user",
        )


@router.post("/list")
async def list_users(
    pagination: PaginationParams = Depends(get_pagination_params),
    search: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin()),
):
    """Paginated active users; ``search`` matches first name, last name or email."""
    service = UserService(db)
    try:
        result = await service.list_users(pagination, search)
        return envelope_response(status.HTTP_200_OK, "Users retrieved successfully", result)

    except HTTPException:
        raise

    except Exception as e:
        logger.log_error(
            {"event": "list_users_error", "error": str(e), "user_id": current_user.id},
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while retrieving users",
        )


@router.get("/{user_id}")
async def get_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authenticated()),
):
    service = UserService(db)
    try:
        user = await service.get_user(user_id)
        return envelope_response(
            status.HTTP_200_OK,
            "User retrieved successfully",
            UserResponseSchema.model_validate(user),
        )

    except HTTPException:
        raise

    except Exception as e:
        logger.log_error(
            {"event": "get_user_error", "target_user_id": user_id, "error": str(e)},
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while retrieving user",
        )


@router.patch("/{user_id}")
async def update_user(
    user_id: int,
    user_data: UserUpdateSchema,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authenticated()),
):
    """
    Update a user.

    Role and active status can only be changed by admins; a new password is
    hashed before it is stored.
    """
    service = UserService(db)
    try:
        user = await service.update_user(user_id, user_data, acting_user=current_user)

        logger.log_info(
            {
                "event": "user_updated",
                "target_user_id": user_id,
                "updated_by": current_user.id,
                "fields": sorted(user_data.model_fields_set),
            }
        )
        return envelope_response(
            status.HTTP_200_OK,
            "User updated successfully",
            UserResponseSchema.model_validate(user),
        )

    except HTTPException:
        raise

    except Exception as e:
        logger.log_error(
            {"event": "update_user_error", "target_user_id": user_id, "error": str(e)},
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while updating user",
        )


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin()),
):
    """Deactivate a user (admin only). The account is kept but can no longer log in."""
    service = UserService(db)
    try:
        user = await service.delete_user(user_id)

        logger.log_info(
            {
                "event": "user_deactivated",
                "target_user_id": user_id,
                "deactivated_by": current_user.id,
            }
        )
        return envelope_response(
            status.HTTP_200_OK,
            "User deactivated successfully",
            UserResponseSchema.model_validate(user),
        )

    except HTTPException:
        raise

    except Exception as e:
        logger.log_error(
            {"event": "delete_user_error", "target_user_id": user_id, "error": str(e)},
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while deactivating user",
        )
