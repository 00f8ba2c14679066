"""
Appointment service - lifecycle business logic

pending -> confirmed | rejected | suggested
suggested -> confirmed (patient accepts) | cancelled (patient declines)
pending | confirmed | suggested -> cancelled (patient)

Every public operation takes the resolved Actor and returns an ActionResult;
domain errors and unexpected faults are converted at that boundary.
"""

import functools
import logging
from datetime import date, datetime, time
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...auth import Actor
from ...cache import (
    cache,
    hospital_appointments_key,
    invalidate_appointment_views,
    patient_appointments_key,
)
from ...errors import (
    BookingError,
    InvalidState,
    NotFound,
    PatientProfileMissing,
    StoreError,
    Unauthenticated,
    Unauthorized,
    ValidationError,
)
from ...models import Appointment, AppointmentStatus
from .reference import generate_unique_reference_number
from .repository import AppointmentRepository
from .schemas import ActionResult, AppointmentResponse

logger = logging.getLogger(__name__)

CANCELLABLE_STATUSES = (
    AppointmentStatus.PENDING.value,
    AppointmentStatus.CONFIRMED.value,
    AppointmentStatus.SUGGESTED.value,
)
DEFAULT_CANCELLATION_REASON = "Cancelled by patient"
SUGGESTION_DECLINED_REASON = "Patient rejected suggested alternative"
DEFAULT_SUGGESTION_REASON = "We have suggested an alternative time slot."


def action_result(operation: str):
    """Convert raised errors into a failed ActionResult for the named operation"""

    def decorator(func):
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            try:
                return func(self, *args, **kwargs)
            except BookingError as e:
                logger.warning(f"⚠️ {operation} failed [{e.code}]: {e.message}")
                return ActionResult(
                    success=False, error=e.message, code=e.code, status_code=e.status_code
                )
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"❌ Database error during {operation}: {e}")
                error = StoreError(str(e.orig) if getattr(e, "orig", None) else str(e))
                return ActionResult(
                    success=False, error=error.message, code=error.code, status_code=error.status_code
                )
            except Exception as e:
                logger.error(f"❌ Unexpected error during {operation}: {type(e).__name__}: {e}")
                return ActionResult(
                    success=False,
                    error="An unexpected error occurred",
                    code="internal_error",
                    status_code=500,
                )

        return wrapper

    return decorator


class AppointmentService:
    """Service layer for appointment lifecycle operations"""

    def __init__(self, db: Session, clock=datetime.utcnow):
        self.db = db
        self.repo = AppointmentRepository()
        self.clock = clock

    # ------------------------------------------------------------------
    # Actor checks
    # ------------------------------------------------------------------

    @staticmethod
    def _require_patient(actor: Optional[Actor]) -> int:
        if actor is None:
            raise Unauthenticated()
        if actor.patient_id is None:
            raise PatientProfileMissing()
        return actor.patient_id

    @staticmethod
    def _require_provider(actor: Optional[Actor]) -> int:
        if actor is None:
            raise Unauthenticated()
        if actor.hospital_id is None:
            raise Unauthorized("Provider not found")
        return actor.hospital_id

    # ------------------------------------------------------------------
    # Patient actions
    # ------------------------------------------------------------------

    @action_result("create appointment")
    def create_appointment(
        self,
        actor: Optional[Actor],
        hospital_id: int,
        department_id: int,
        appointment_date: date,
        start_time: time,
        reason: Optional[str] = None,
    ) -> ActionResult:
        patient_id = self._require_patient(actor)

        if not self.repo.get_department(self.db, department_id, hospital_id):
            raise NotFound("Department not found for this hospital")

        now = self.clock()
        reference_number = generate_unique_reference_number(
            lambda ref: self.repo.reference_number_exists(self.db, ref), now=now
        )

        appointment = self.repo.create_appointment(
            self.db,
            patient_id=patient_id,
            hospital_id=hospital_id,
            department_id=department_id,
            appointment_date=appointment_date,
            start_time=start_time,
            status=AppointmentStatus.PENDING.value,
            reference_number=reference_number,
            reason=reason or None,
        )
        logger.info(f"✅ Appointment {reference_number} created for patient {patient_id}")

        invalidate_appointment_views(patient_id=patient_id, hospital_id=hospital_id)
        return ActionResult(
            success=True, reference_number=reference_number, appointment_id=appointment.id
        )

    @action_result("cancel appointment")
    def cancel_appointment(
        self, actor: Optional[Actor], appointment_id: int, reason: Optional[str] = None
    ) -> ActionResult:
        patient_id = self._require_patient(actor)

        updated = self.repo.update_where(
            self.db,
            appointment_id,
            {
                "status": AppointmentStatus.CANCELLED.value,
                "cancellation_reason": reason or DEFAULT_CANCELLATION_REASON,
                "cancelled_at": self.clock(),
            },
            patient_id=patient_id,
            statuses=CANCELLABLE_STATUSES,
        )
        if updated == 0:
            raise NotFound("Appointment not found or can no longer be cancelled")

        logger.info(f"✅ Appointment {appointment_id} cancelled by patient {patient_id}")
        self._invalidate(appointment_id, patient_id=patient_id)
        return ActionResult(success=True, appointment_id=appointment_id)

    @action_result("respond to suggestion")
    def respond_to_suggestion(
        self, actor: Optional[Actor], appointment_id: int, accept: bool
    ) -> ActionResult:
        patient_id = self._require_patient(actor)

        appointment = self.repo.get_patient_appointment(
            self.db, appointment_id, patient_id, status=AppointmentStatus.SUGGESTED.value
        )
        if not appointment:
            raise NotFound("Suggested appointment not found")

        if accept:
            values = {"status": AppointmentStatus.CONFIRMED.value}
            if appointment.suggested_date:
                values["appointment_date"] = appointment.suggested_date
            if appointment.suggested_time:
                values["start_time"] = appointment.suggested_time
        else:
            values = {
                "status": AppointmentStatus.CANCELLED.value,
                "cancellation_reason": SUGGESTION_DECLINED_REASON,
                "cancelled_at": self.clock(),
            }
        # Suggested slot only lives while the appointment is in 'suggested'
        values["suggested_date"] = None
        values["suggested_time"] = None

        updated = self.repo.update_where(
            self.db,
            appointment_id,
            values,
            patient_id=patient_id,
            statuses=(AppointmentStatus.SUGGESTED.value,),
        )
        if updated == 0:
            raise NotFound("Suggested appointment not found")

        logger.info(
            f"✅ Patient {patient_id} {'accepted' if accept else 'declined'} "
            f"suggestion for appointment {appointment_id}"
        )
        invalidate_appointment_views(patient_id=patient_id, hospital_id=appointment.hospital_id)
        return ActionResult(success=True, appointment_id=appointment_id)

    # ------------------------------------------------------------------
    # Provider actions
    # ------------------------------------------------------------------

    def _review_pending(self, actor: Optional[Actor], appointment_id: int, values: dict) -> Appointment:
        """Apply a provider decision to a pending appointment of the provider's hospital"""
        hospital_id = self._require_provider(actor)

        appointment = self.repo.get_appointment(self.db, appointment_id)
        if not appointment:
            raise NotFound("Appointment not found")
        if appointment.hospital_id != hospital_id:
            raise Unauthorized()
        if appointment.status != AppointmentStatus.PENDING.value:
            raise InvalidState("Appointment is not pending")

        values = {**values, "reviewed_by": actor.user_id, "reviewed_at": self.clock()}
        updated = self.repo.update_where(
            self.db,
            appointment_id,
            values,
            hospital_id=hospital_id,
            statuses=(AppointmentStatus.PENDING.value,),
        )
        if updated == 0:
            # Another request (e.g. a patient cancel) changed the status first
            raise InvalidState("Appointment is not pending")

        invalidate_appointment_views(patient_id=appointment.patient_id, hospital_id=hospital_id)
        return appointment

    @action_result("approve appointment")
    def approve_appointment(self, actor: Optional[Actor], appointment_id: int) -> ActionResult:
        self._review_pending(actor, appointment_id, {"status": AppointmentStatus.CONFIRMED.value})
        logger.info(f"✅ Appointment {appointment_id} approved by user {actor.user_id}")
        return ActionResult(success=True, appointment_id=appointment_id)

    @action_result("reject appointment")
    def reject_appointment(
        self, actor: Optional[Actor], appointment_id: int, rejection_reason: str
    ) -> ActionResult:
        if not rejection_reason or not rejection_reason.strip():
            raise ValidationError("Rejection reason is required")

        self._review_pending(
            actor,
            appointment_id,
            {"status": AppointmentStatus.REJECTED.value, "rejection_reason": rejection_reason.strip()},
        )
        logger.info(f"✅ Appointment {appointment_id} rejected by user {actor.user_id}")
        return ActionResult(success=True, appointment_id=appointment_id)

    @action_result("suggest alternative")
    def suggest_alternative(
        self,
        actor: Optional[Actor],
        appointment_id: int,
        suggested_date: date,
        suggested_time: time,
        reason: Optional[str] = None,
    ) -> ActionResult:
        if suggested_date is None or suggested_time is None:
            raise ValidationError("Suggested date and time are required")

        self._review_pending(
            actor,
            appointment_id,
            {
                "status": AppointmentStatus.SUGGESTED.value,
                "suggested_date": suggested_date,
                "suggested_time": suggested_time,
                "rejection_reason": reason or DEFAULT_SUGGESTION_REASON,
            },
        )
        logger.info(
            f"✅ Alternative {suggested_date} {suggested_time} suggested for appointment {appointment_id}"
        )
        return ActionResult(success=True, appointment_id=appointment_id)

    # ------------------------------------------------------------------
    # Read views
    # ------------------------------------------------------------------

    def list_patient_appointments(self, actor: Actor, status: Optional[str] = None) -> list[dict]:
        patient_id = self._require_patient(actor)
        key = patient_appointments_key(patient_id, status)
        cached = cache.get(key)
        if cached is not None:
            return cached

        appointments = [
            AppointmentResponse.model_validate(a).model_dump(mode="json")
            for a in self.repo.list_for_patient(self.db, patient_id, status)
        ]
        cache.set(key, appointments)
        return appointments

    def list_hospital_appointments(
        self, actor: Actor, status: Optional[str] = None, on_date: Optional[date] = None
    ) -> list[dict]:
        hospital_id = self._require_provider(actor)
        key = hospital_appointments_key(hospital_id, status, on_date)
        cached = cache.get(key)
        if cached is not None:
            return cached

        appointments = [
            AppointmentResponse.model_validate(a).model_dump(mode="json")
            for a in self.repo.list_for_hospital(self.db, hospital_id, status, on_date)
        ]
        cache.set(key, appointments)
        return appointments

    def _invalidate(self, appointment_id: int, patient_id: int) -> None:
        appointment = self.repo.get_appointment(self.db, appointment_id)
        invalidate_appointment_views(
            patient_id=patient_id, hospital_id=appointment.hospital_id if appointment else None
        )
