from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_db
from app.core.pagination import PaginationParams, get_pagination_params
from app.core.permission_checker import require_authenticated
from app.core.responses import envelope_response
from app.core.utils import logger
from app.models.user_model import User
from app.schemas.patient_schemas import (
    PatientCreateSchema,
    PatientResponseSchema,
    PatientUpdateSchema,
)
from app.services.patient_service import PatientService


router = APIRouter(prefix="/patients", tags=["patients"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_patient(
    patient_data: PatientCreateSchema,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authenticated()),
):
    """
    Register a new patient.

    The ``patientId`` (``P`` followed by nine digits) is generated by the
    server; a collision is retried and surfaces as 409 only when retries run out.
    """
    service = PatientService(db)
    try:
        patient = await service.create_patient(patient_data)

        logger.log_info(
            {
                "event": "patient_created",
                "patient_id": patient.patient_id,
                "created_by": current_user.id,
            }
        )
        return envelope_response(
            status.HTTP_201_CREATED,
            "Patient created successfully",
            PatientResponseSchema.model_validate(patient),
        )

    except HTTPException:
        raise

    except Exception as e:
        logger.log_error(
            {
                "event": "patient_creation_error",
                "error": str(e),
                "error_type": type(e).__name__,
                "created_by": current_user.id,
            },
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while creating patient",
        )


@router.get("/list")
async def list_patients(
    pagination: PaginationParams = Depends(get_pagination_params),
    search: Optional[str] = Query(default=None, description="Name or patient id"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authenticated()),
):
    service = PatientService(db)
    try:
        result = await service.list_patients(pagination, search)
        return envelope_response(
            status.HTTP_200_OK, "Patients retrieved successfully", result
        )

    except HTTPException:
        raise

    except Exception as e:
        logger.log_error(
            {"event": "list_patients_error", "error": str(e), "user_id": current_user.id},
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while retrieving patients",
        )


@router.get("/{patient_id}")
async def get_patient(
    patient_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authenticated()),
):
    service = PatientService(db)
    try:
        patient = await service.get_patient(patient_id)
        return envelope_response(
            status.HTTP_200_OK,
            "Patient retrieved successfully",
            PatientResponseSchema.model_validate(patient),
        )

    except HTTPException:
        raise

    except Exception as e:
        logger.log_error(
            {"event": "get_patient_error", "patient_id": patient_id, "error": str(e)},
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while retrieving patient",
        )


@router.patch("/{patient_id}")
async def update_patient(
    patient_id: int,
    update_data: PatientUpdateSchema,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authenticated()),
):
    service = PatientService(db)
    try:
        patient = await service.update_patient(patient_id, update_data)

        logger.log_info(
            {
                "event": "patient_updated",
                "patient_id": patient.patient_id,
                "updated_by": current_user.id,
            }
        )
        return envelope_response(
            status.HTTP_200_OK,
            "Patient updated successfully",
            PatientResponseSchema.model_validate(patient),
        )

    except HTTPException:
        raise

    except Exception as e:
        logger.log_error(
            {"event": "update_patient_error", "patient_id": patient_id, "error": str(e)},
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while updating patient",
        )


@router.delete("/{patient_id}")
async def delete_patient(
    patient_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authenticated()),
):
    """Deactivate a patient. The record and its history are kept."""
    service = PatientService(db)
    try:
        patient = await service.delete_patient(patient_id)

        logger.log_info(
            {
                "event": "patient_deactivated",
                "patient_id": patient.patient_id,
                "deactivated_by": current_user.id,
            }
        )
        return envelope_response(
            status.HTTP_200_OK,
            "Patient deactivated successfully",
            PatientResponseSchema.model_validate(patient),
        )

    except HTTPException:
        raise

    except Exception as e:
        logger.log_error(
            {"event": "delete_patient_error", "patient_id": patient_id, "error": str(e)},
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while deactivating patient",
        )
