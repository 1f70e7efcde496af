from fastapi import APIRouter
from .auth.auth_routes import router as auth_router
from .user.user_routes import router as user_router
from .patient.patient_routes import router as patient_router
from .appointment.appointment_routes import router as appointment_router
from .encounter.encounter_routes import router as encounter_router
from .medication.medication_routes import router as medication_router

router = APIRouter()


router.include_router(auth_router)
router.include_router(user_router)
router.include_router(patient_router)
router.include_router(appointment_router)
router.include_router(encounter_router)
router.include_router(medication_router)
