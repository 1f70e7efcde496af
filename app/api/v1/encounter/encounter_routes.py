import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_db
from app.core.pagination import PaginationParams, get_pagination_params
from app.core.permission_checker import require_authenticated
from app.core.responses import envelope_response
from app.core.utils import logger
from app.models.user_model import User
from app.schemas.encounter_schemas import (
    EncounterCreateSchema,
    EncounterResponseSchema,
    EncounterUpdateSchema,
)
from app.services.encounter_service import EncounterService


router = APIRouter(prefix="/encounters", tags=["encounters"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_encounter(
    encounter_data: EncounterCreateSchema,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authenticated()),
):
    """
    Record a clinical encounter.

    When ``appointmentId`` is given the appointment must exist; it is linked
    back to the new encounter and marked completed.
    """
    service = EncounterService(db)
    try:
        encounter = await service.create_encounter(encounter_data)

        logger.log_info(
            {
                "event": "encounter_created",
                "encounter_id": encounter.encounter_id,
                "created_by": current_user.id,
            }
        )
        return envelope_response(
            status.HTTP_201_CREATED,
            "Encounter created successfully",
            EncounterResponseSchema.model_validate(encounter),
        )

    except HTTPException:
        raise

    except Exception as e:
        logger.log_error(
            {
                "event": "encounter_creation_error",
                "error": str(e),
                "error_type": type(e).__name__,
                "created_by": current_user.id,
            },
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while creating encounter",
        )


@router.get("")
async def list_encounters(
    pagination: PaginationParams = Depends(get_pagination_params),
    search: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authenticated()),
):
    service = EncounterService(db)
    try:
        result = await service.list_encounters(pagination, search)
        return envelope_response(
            status.HTTP_200_OK, "Encounters retrieved successfully", result
        )

    except HTTPException:
        raise

    except Exception as e:
        logger.log_error(
            {"event": "list_encounters_error", "error": str(e), "user_id": current_user.id},
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while retrieving encounters",
        )


@router.get("/{encounter_id}")
async def get_encounter(
    encounter_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authenticated()),
):
    service = EncounterService(db)
    try:
        encounter = await service.get_encounter(encounter_id)
        return envelope_response(
            status.HTTP_200_OK,
            "Encounter retrieved successfully",
            EncounterResponseSchema.model_validate(encounter),
        )

    except HTTPException:
        raise

    except Exception as e:
        logger.log_error(
            {"event": "get_encounter_error", "encounter_id": str(encounter_id), "error": str(e)},
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while retrieving encounter",
        )


@router.patch("/{encounter_id}")
async def update_encounter(
    encounter_id: uuid.UUID,
    update_data: EncounterUpdateSchema,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authenticated()),
):
    service = EncounterService(db)
    try:
        encounter = await service.update_encounter(encounter_id, update_data)
        return envelope_response(
            status.HTTP_200_OK,
            "Encounter updated successfully",
            EncounterResponseSchema.model_validate(encounter),
        )

    except HTTPException:
        raise

    except Exception as e:
        logger.log_error(
            {"event": "update_encounter_error", "encounter_id": str(encounter_id), "error": str(e)},
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while updating encounter",
        )


@router.delete("/{encounter_id}")
async def cancel_encounter(
    encounter_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authenticated()),
):
    """Cancel rather than delete: the encounter stays readable with status ``cancelled``."""
    service = EncounterService(db)
    try:
        encounter = await service.cancel_encounter(encounter_id)

        logger.log_info(
            {
                "event": "encounter_cancelled",
                "encounter_id": encounter.encounter_id,
                "cancelled_by": current_user.id,
            }
        )
        return envelope_response(
            status.HTTP_200_OK,
            "Encounter cancelled successfully",
            EncounterResponseSchema.model_validate(encounter),
        )

    except HTTPException:
        raise

    except Exception as e:
        logger.log_error(
            {"event": "cancel_encounter_error", "encounter_id": str(encounter_id), "error": str(e)},
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while cancelling encounter",
        )
