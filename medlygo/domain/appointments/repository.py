"""Appointment repository - Database operations for appointments"""

from datetime import date
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ...models import Appointment, Department, Hospital


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def reference_number_exists(db: Session, reference_number: str) -> bool:
        return (
            db.query(Appointment.id)
            .filter(Appointment.reference_number == reference_number)
            .first()
            is not None
        )

    @staticmethod
    def get_department(db: Session, department_id: int, hospital_id: int) -> Optional[Department]:
        """Get an active department that belongs to an active hospital"""
        return (
            db.query(Department)
            .join(Hospital, Hospital.id == Department.hospital_id)
            .filter(
                Department.id == department_id,
                Department.hospital_id == hospital_id,
                Department.is_active.is_(True),
                Hospital.is_active.is_(True),
            )
            .first()
        )

    @staticmethod
    def create_appointment(db: Session, **appointment_data) -> Appointment:
        appointment = Appointment(**appointment_data)
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def get_appointment(db: Session, appointment_id: int) -> Optional[Appointment]:
        return db.query(Appointment).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def get_patient_appointment(
        db: Session, appointment_id: int, patient_id: int, status: Optional[str] = None
    ) -> Optional[Appointment]:
        query = db.query(Appointment).filter(
            Appointment.id == appointment_id, Appointment.patient_id == patient_id
        )
        if status:
            query = query.filter(Appointment.status == status)
        return query.first()

    @staticmethod
    def update_where(
        db: Session,
        appointment_id: int,
        values: dict,
        patient_id: Optional[int] = None,
        hospital_id: Optional[int] = None,
        statuses: Optional[Iterable[str]] = None,
    ) -> int:
        """
        Conditional update; returns the number of rows changed.

        The filter is the concurrency guard: if another request moved the row
        out of the allowed statuses first, zero rows match.
        """
        query = db.query(Appointment).filter(Appointment.id == appointment_id)
        if patient_id is not None:
            query = query.filter(Appointment.patient_id == patient_id)
        if hospital_id is not None:
            query = query.filter(Appointment.hospital_id == hospital_id)
        if statuses is not None:
            query = query.filter(Appointment.status.in_(list(statuses)))

        updated = query.update(values, synchronize_session=False)
        db.commit()
        return updated

    @staticmethod
    def list_for_patient(db: Session, patient_id: int, status: Optional[str] = None) -> list[Appointment]:
        query = db.query(Appointment).filter(Appointment.patient_id == patient_id)
        if status:
            query = query.filter(Appointment.status == status)
        return query.order_by(Appointment.appointment_date.desc(), Appointment.start_time.desc()).all()

    @staticmethod
    def list_for_hospital(
        db: Session,
        hospital_id: int,
        status: Optional[str] = None,
        on_date: Optional[date] = None,
    ) -> list[Appointment]:
        query = db.query(Appointment).filter(Appointment.hospital_id == hospital_id)
        if status:
            query = query.filter(Appointment.status == status)
        if on_date:
            query = query.filter(Appointment.appointment_date == on_date)
        return query.order_by(Appointment.appointment_date.asc(), Appointment.start_time.asc()).all()
