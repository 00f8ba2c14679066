"""Patient service - onboarding, profile and self-service account deletion"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...cache import invalidate_appointment_views
from ...errors import PatientProfileMissing, StoreError, Unauthorized
from ...identity_admin import FirebaseAccountAdmin
from ...models import Appointment, Notification, Patient, User, UserRole
from .schemas import PatientOnboarding, PatientProfile, PatientProfileUpdate

logger = logging.getLogger(__name__)

USER_FIELDS = ("full_name", "phone")


class PatientService:
    """Service layer for the calling patient's own profile"""

    def __init__(self, db: Session, account_admin: Optional[FirebaseAccountAdmin] = None):
        self.db = db
        self.account_admin = account_admin or FirebaseAccountAdmin()

    @staticmethod
    def _require_patient_account(user: User) -> None:
        if user.role != UserRole.PATIENT.value:
            raise Unauthorized("Only patient accounts have a patient profile")

    def _get_patient(self, user: User) -> Patient:
        patient = self.db.query(Patient).filter(Patient.user_id == user.id).first()
        if not patient:
            raise PatientProfileMissing()
        return patient

    @staticmethod
    def _to_profile(user: User, patient: Patient) -> PatientProfile:
        return PatientProfile(
            id=patient.id,
            user_id=user.id,
            full_name=user.full_name,
            email=user.email,
            phone=user.phone,
            date_of_birth=patient.date_of_birth,
            gender=patient.gender,
            address=patient.address,
            ghana_card_id=patient.ghana_card_id,
            emergency_contact_name=patient.emergency_contact_name,
            emergency_contact_phone=patient.emergency_contact_phone,
        )

    def _apply(self, user: User, patient: Patient, changes: dict) -> None:
        for field, value in changes.items():
            if field in USER_FIELDS:
                # full_name is required on users; a null leaves it as is
                if value is not None or field != "full_name":
                    setattr(user, field, value)
            else:
                setattr(patient, field, value)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(user)
        self.db.refresh(patient)

    def get_profile(self, user: User) -> PatientProfile:
        return self._to_profile(user, self._get_patient(user))

    def onboard(self, user: User, data: PatientOnboarding) -> PatientProfile:
        """Create the caller's patient profile, or overwrite it if onboarding is repeated"""
        self._require_patient_account(user)

        patient = self.db.query(Patient).filter(Patient.user_id == user.id).first()
        created = patient is None
        if created:
            patient = Patient(user_id=user.id)
            self.db.add(patient)

        self._apply(user, patient, data.model_dump(exclude_unset=True))
        logger.info(f"✅ Patient profile {'created' if created else 'updated'} for user {user.id}")
        return self._to_profile(user, patient)

    def update_profile(self, user: User, data: PatientProfileUpdate) -> PatientProfile:
        patient = self._get_patient(user)
        self._apply(user, patient, data.model_dump(exclude_unset=True))
        logger.info(f"✅ Patient profile {patient.id} updated")
        return self._to_profile(user, patient)

    def delete_account(self, user: User) -> None:
        """
        Remove the patient's data, then the user row, then the login account.

        Appointments and their notification log go with the patient row.
        """
        self._require_patient_account(user)

        user_id = user.id
        firebase_uid = user.firebase_uid
        patient = self.db.query(Patient).filter(Patient.user_id == user_id).first()
        patient_id = patient.id if patient else None
        hospital_ids = set()

        try:
            if patient_id is not None:
                appointments = (
                    self.db.query(Appointment.id, Appointment.hospital_id)
                    .filter(Appointment.patient_id == patient_id)
                    .all()
                )
                hospital_ids = {hospital_id for _, hospital_id in appointments}
                appointment_ids = [appointment_id for appointment_id, _ in appointments]
                if appointment_ids:
                    self.db.query(Notification).filter(
                        Notification.appointment_id.in_(appointment_ids)
                    ).delete(synchronize_session=False)
                    self.db.query(Appointment).filter(
                        Appointment.patient_id == patient_id
                    ).delete(synchronize_session=False)
                self.db.query(Patient).filter(Patient.id == patient_id).delete(
                    synchronize_session=False
                )
            self.db.query(User).filter(User.id == user_id).delete(synchronize_session=False)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if patient_id is not None:
            invalidate_appointment_views(patient_id=patient_id)
        for hospital_id in hospital_ids:
            invalidate_appointment_views(hospital_id=hospital_id)
        logger.info(f"🗑️ Patient data for user {user_id} deleted")

        try:
            self.account_admin.delete_user(firebase_uid)
        except Exception as e:
            logger.error(f"❌ Failed to delete auth account for user {user_id}: {e}")
            raise StoreError("Failed to delete account from authentication") from e
