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
from app.schemas.medication_schemas import (
    DiscontinueMedicationSchema,
    MedicationMasterCreateSchema,
    MedicationMasterResponseSchema,
    PatientMedicationCreateSchema,
    PatientMedicationResponseSchema,
    PatientMedicationStatus,
    PatientMedicationUpdateSchema,
)
from app.services.medication_service import MedicationService


router = APIRouter(prefix="/medications", tags=["medications"])


def _unexpected(event: str, e: Exception, detail: str, **context) -> HTTPException:
    logger.log_error(
        {"event": event, "error": str(e), "error_type": type(e).__name__, **context},
        exc_info=True,
    )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail
    )


# ============= Medication Master =============
@router.get("/master")
async def list_medication_master(
    pagination: PaginationParams = Depends(get_pagination_params),
    search: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authenticated()),
):
    service = MedicationService(db)
    try:
        result = await service.list_medication_master(pagination, search)
        return envelope_response(
            status.HTTP_200_OK, "Medications retrieved successfully", result
        )

    except HTTPException:
        raise

    except Exception as e:
        raise _unexpected(
            "list_medication_master_error",
            e,
            "An error occurred while retrieving medications",
        )


@router.get("/master/{medication_id}")
async def get_medication_master(
    medication_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authenticated()),
):
    service = MedicationService(db)
    try:
        medication = await service.get_medication_master(medication_id)
        return envelope_response(
            status.HTTP_200_OK,
            "Medication retrieved successfully",
            MedicationMasterResponseSchema.model_validate(medication),
        )

    except HTTPException:
        raise

    except Exception as e:
        raise _unexpected(
            "get_medication_master_error",
            e,
            "An error occurred while retrieving medication",
            medication_id=str(medication_id),
        )


@router.post("/master", status_code=status.HTTP_201_CREATED)
async def create_medication_master(
    medication_data: MedicationMasterCreateSchema,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authenticated()),
):
    service = MedicationService(db)
    try:
        medication = await service.create_medication_master(medication_data)

        logger.log_info(
            {
                "event": "medication_master_created",
                "medication_id": str(medication.id),
                "generic_name": medication.generic_name,
                "created_by": current_user.id,
            }
        )
        return envelope_response(
            status.HTTP_201_CREATED,
            "Medication created successfully",
            MedicationMasterResponseSchema.model_validate(medication),
        )

    except HTTPException:
        raise

    except Exception as e:
        raise _unexpected(
            "medication_master_creation_error",
            e,
            "An unexpected error occurred while creating medication",
            created_by=current_user.id,
        )


# ============= Patient Medication =============
@router.post("/patient", status_code=status.HTTP_201_CREATED)
async def create_patient_medication(
    medication_data: PatientMedicationCreateSchema,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authenticated()),
):
    """
    Prescribe a catalogue medication to a patient.

    Returns:
        201 with the prescription; 404 if the patient, medication or provider
        does not exist
    """
    service = MedicationService(db)
    try:
        prescription = await service.create_patient_medication(medication_data)

        logger.log_info(
            {
                "event": "patient_medication_created",
                "patient_medication_id": str(prescription.id),
                "patient_id": prescription.patient_id,
                "created_by": current_user.id,
            }
        )
        return envelope_response(
            status.HTTP_201_CREATED,
            "Patient medication created successfully",
            PatientMedicationResponseSchema.model_validate(prescription),
        )

    except HTTPException:
        raise

    except Exception as e:
        raise _unexpected(
            "patient_medication_creation_error",
            e,
            "An unexpected error occurred while creating patient medication",
            created_by=current_user.id,
        )


@router.get("/patient/{patient_id}")
async def list_patient_medications(
    patient_id: int,
    status_filter: Optional[PatientMedicationStatus] = Query(default=None, alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authenticated()),
):
    """All prescriptions for a patient, newest start date first."""
    service = MedicationService(db)
    try:
        prescriptions = await service.list_patient_medications(patient_id, status_filter)
        return envelope_response(
            status.HTTP_200_OK,
            "Patient medications retrieved successfully",
            [PatientMedicationResponseSchema.model_validate(p) for p in prescriptions],
        )

    except HTTPException:
        raise

    except Exception as e:
        raise _unexpected(
            "list_patient_medications_error",
            e,
            "An error occurred while retrieving patient medications",
            patient_id=patient_id,
        )


@router.patch("/patient/{medication_id}/discontinue")
async def discontinue_patient_medication(
    medication_id: uuid.UUID,
    discontinue_data: Optional[DiscontinueMedicationSchema] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authenticated()),
):
    service = MedicationService(db)
    try:
        prescription = await service.discontinue_patient_medication(
            medication_id, discontinue_data.reason if discontinue_data else None
        )

        logger.log_info(
            {
                "event": "patient_medication_discontinued",
                "patient_medication_id": str(medication_id),
                "discontinued_by": current_user.id,
            }
        )
        return envelope_response(
            status.HTTP_200_OK,
            "Patient medication discontinued successfully",
            PatientMedicationResponseSchema.model_validate(prescription),
        )

    except HTTPException:
        raise

    except Exception as e:
        raise _unexpected(
            "discontinue_patient_medication_error",
            e,
            "An error occurred while discontinuing patient medication",
            patient_medication_id=str(medication_id),
        )


@router.patch("/patient/{medication_id}")
async def update_patient_medication(
    medication_id: uuid.UUID,
    update_data: PatientMedicationUpdateSchema,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authenticated()),
):
    service = MedicationService(db)
    try:
        prescription = await service.update_patient_medication(medication_id, update_data)
        return envelope_response(
            status.HTTP_200_OK,
            "Patient medication updated successfully",
            PatientMedicationResponseSchema.model_validate(prescription),
        )

    except HTTPException:
        raise

    except Exception as e:
        raise _unexpected(
            "update_patient_medication_error",
            e,
            "An error occurred while updating patient medication",
            patient_medication_id=str(medication_id),
        )
