from .user_model import User
from .patient_model import Patient
from .appointment_model import Appointment
from .encounter_model import Encounter
from .medication_model import MedicationMaster, PatientMedication
from .sequence_model import IdentifierSequence
