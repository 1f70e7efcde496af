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
from app.schemas.appointment_schemas import (
    AppointmentCreateSchema,
    AppointmentResponseSchema,
    AppointmentUpdateSchema,
)
from app.services.appointment_service import AppointmentService


router = APIRouter(prefix="/appointments", tags=["appointments"])


def _unexpected(event: str, e: Exception, detail: str, **context) -> HTTPException:
    logger.log_error(
        {"event": event, "error": str(e), "error_type": type(e).__name__, **context},
        exc_info=True,
    )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_appointment(
    appointment_data: AppointmentCreateSchema,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authenticated()),
):
    """
    Book an appointment.

    ``appointmentId`` is allocated from the per-day counter, e.g.
    ``APT20241201001`` for the first booking made on 1 December 2024.
    """
    service = AppointmentService(db)
    try:
        appointment = await service.create_appointment(appointment_data)

        logger.log_info(
            {
                "event": "appointment_created",
                "appointment_id": appointment.appointment_id,
                "created_by": current_user.id,
            }
        )
        return envelope_response(
            status.HTTP_201_CREATED,
            "Appointment created successfully",
            AppointmentResponseSchema.model_validate(appointment),
        )

    except HTTPException:
        raise

    except Exception as e:
        raise _unexpected(
            "appointment_creation_error",
            e,
            "An unexpected error occurred while creating appointment",
            created_by=current_user.id,
        )


@router.get("")
async def list_appointments(
    pagination: PaginationParams = Depends(get_pagination_params),
    search: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authenticated()),
):
    """Newest appointment date first. ``search`` also matches patient and provider names."""
    service = AppointmentService(db)
    try:
        result = await service.list_appointments(pagination, search)
        return envelope_response(
            status.HTTP_200_OK, "Appointments retrieved successfully", result
        )

    except HTTPException:
        raise

    except Exception as e:
        raise _unexpected(
            "list_appointments_error",
            e,
            "An error occurred while retrieving appointments",
            user_id=current_user.id,
        )


@router.get("/{appointment_id}")
async def get_appointment(
    appointment_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authenticated()),
):
    service = AppointmentService(db)
    try:
        appointment = await service.get_appointment(appointment_id)
        return envelope_response(
            status.HTTP_200_OK,
            "Appointment retrieved successfully",
            AppointmentResponseSchema.model_validate(appointment),
        )

    except HTTPException:
        raise

    except Exception as e:
        raise _unexpected(
            "get_appointment_error",
            e,
            "An error occurred while retrieving appointment",
            appointment_id=str(appointment_id),
        )


@router.patch("/{appointment_id}/check-in")
async def check_in_appointment(
    appointment_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authenticated()),
):
    service = AppointmentService(db)
    try:
        appointment = await service.check_in(appointment_id)

        logger.log_info(
            {
                "event": "patient_checked_in",
                "appointment_id": appointment.appointment_id,
                "checked_in_by": current_user.id,
            }
        )
        return envelope_response(
            status.HTTP_200_OK,
            "Patient checked in successfully",
            AppointmentResponseSchema.model_validate(appointment),
        )

    except HTTPException:
        raise

    except Exception as e:
        raise _unexpected(
            "check_in_error",
            e,
            "An error occurred while checking in patient",
            appointment_id=str(appointment_id),
        )


@router.patch("/{appointment_id}")
async def update_appointment(
    appointment_id: uuid.UUID,
    update_data: AppointmentUpdateSchema,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authenticated()),
):
    service = AppointmentService(db)
    try:
        appointment = await service.update_appointment(appointment_id, update_data)
        return envelope_response(
            status.HTTP_200_OK,
            "Appointment updated successfully",
            AppointmentResponseSchema.model_validate(appointment),
        )

    except HTTPException:
        raise

    except Exception as e:
        raise _unexpected(
            "update_appointment_error",
            e,
            "An error occurred while updating appointment",
            appointment_id=str(appointment_id),
        )


@router.delete("/{appointment_id}")
async def delete_appointment(
    appointment_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authenticated()),
):
    """Appointments are removed permanently; their ids are never handed out again."""
    service = AppointmentService(db)
    try:
        await service.delete_appointment(appointment_id)

        logger.log_info(
            {
                "event": "appointment_deleted",
                "appointment_id": str(appointment_id),
                "deleted_by": current_user.id,
            }
        )
        return envelope_response(status.HTTP_200_OK, "Appointment deleted successfully")

    except HTTPException:
        raise

    except Exception as e:
        raise _unexpected(
            "delete_appointment_error",
            e,
            "An error occurred while deleting appointment",
            appointment_id=str(appointment_id),
        )
