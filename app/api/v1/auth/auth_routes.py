from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_db
from app.core.permission_checker import require_authenticated
from app.core.responses import envelope_response
from app.core.utils import logger
from app.models.user_model import User
from app.schemas.user_schemas import UserLoginSchema, UserResponseSchema
from app.services.user_service import UserService


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login")
async def login(
    login_data: UserLoginSchema,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """
    Exchange email and password for a bearer access token.

    Returns:
        Envelope with ``data.access_token``; 401 "Invalid credentials" otherwise
    """
    service = UserService(db)
    try:
        token = await service.login_user(
            login_data.email,
            login_data.password,
            ip_address=request.client.host if request.client else None,
        )
        return envelope_response(
            status.HTTP_200_OK, "Login successful", {"access_token": token}
        )

    except HTTPException:
        raise

    except Exception as e:
        logger.log_error(
            {"event": "login_error", "error": str(e), "error_type": type(e).__name__},
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred during login",
        )


@router.get("/me")
async def get_me(current_user: User = Depends(require_authenticated())):
    return envelope_response(
        status.HTTP_200_OK,
        "User retrieved successfully",
        UserResponseSchema.model_validate(current_user),
    )
