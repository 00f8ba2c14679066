"""Hospital service - admin onboarding and hospital lifecycle"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...errors import NotFound, StoreError, ValidationError
from ...identity_admin import FirebaseAccountAdmin, generate_temporary_password
from ...models import (
    Appointment,
    AppointmentStatus,
    Department,
    Hospital,
    Patient,
    Provider,
    User,
    UserRole,
)
from ...shared.saga import Saga, SagaFailed
from .schemas import DashboardStats, HospitalCreate, HospitalUpdate

logger = logging.getLogger(__name__)

CLEARABLE_HOSPITAL_FIELDS = {"website", "description"}


class HospitalService:
    """Service layer for admin hospital operations"""

    def __init__(self, db: Session, account_admin: Optional[FirebaseAccountAdmin] = None):
        self.db = db
        self.account_admin = account_admin or FirebaseAccountAdmin()

    def _insert(self, obj):
        try:
            self.db.add(obj)
            self.db.commit()
            self.db.refresh(obj)
            return obj
        except Exception:
            self.db.rollback()
            raise

    def _delete(self, *objs) -> None:
        for obj in objs:
            self.db.delete(obj)
        self.db.commit()

    def onboard_hospital(self, data: HospitalCreate) -> dict:
        """
        Create the hospital's login account, user row, hospital, provider link
        and departments. Any failing step rolls back the earlier ones.
        """
        email_taken = (
            self.db.query(User.id).filter(func.lower(User.email) == data.email).first()
            or self.db.query(Hospital.id).filter(func.lower(Hospital.email) == data.email).first()
        )
        if email_taken:
            raise ValidationError("A hospital or user with this email already exists")

        temporary_password = generate_temporary_password()

        saga = (
            Saga("onboard_hospital")
            .step(
                "auth_uid",
                lambda ctx: self.account_admin.create_user(data.email, temporary_password, data.name),
                lambda ctx, uid: self.account_admin.delete_user(uid),
            )
            .step(
                "user",
                lambda ctx: self._insert(
                    User(
                        firebase_uid=ctx["auth_uid"],
                        email=data.email,
                        full_name=data.name,
                        phone=data.phone,
                        role=UserRole.PROVIDER.value,
                    )
                ),
                lambda ctx, user: self._delete(user),
            )
            .step(
                "hospital",
                lambda ctx: self._insert(
                    Hospital(
                        name=data.name,
                        address=data.address,
                        city=data.city,
                        region=data.region,
                        phone=data.phone,
                        email=data.email,
                        website=data.website or None,
                        type=data.type,
                        description=data.description or None,
                        is_active=True,
                    )
                ),
                lambda ctx, hospital: self._delete(hospital),
            )
            .step(
                "provider",
                lambda ctx: self._insert(
                    Provider(user_id=ctx["user"].id, hospital_id=ctx["hospital"].id, is_active=True)
                ),
                lambda ctx, provider: self._delete(provider),
            )
            .step(
                "departments",
                lambda ctx: self._create_departments(ctx["hospital"].id, data.departments),
                lambda ctx, departments: self._delete(*departments),
            )
        )

        try:
            context = saga.execute()
        except SagaFailed as e:
            logger.error(f"❌ Hospital onboarding for {data.email} failed at '{e.step}': {e.error}")
            raise StoreError(f"Failed to create hospital ({e.step} step)") from e

        hospital = context["hospital"]
        logger.info(f"✅ Hospital {hospital.id} onboarded with {len(context['departments'])} department(s)")
        return {
            "hospital_id": hospital.id,
            "credentials": {"email": data.email, "temporary_password": temporary_password},
        }

    def _create_departments(self, hospital_id: int, names: list[str]) -> list[Department]:
        if not names:
            return []
        departments = [Department(hospital_id=hospital_id, name=name) for name in names]
        try:
            self.db.add_all(departments)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return departments

    def _get_hospital(self, hospital_id: int) -> Hospital:
        hospital = self.db.query(Hospital).filter(Hospital.id == hospital_id).first()
        if not hospital:
            raise NotFound("Hospital not found")
        return hospital

    def deactivate_hospital(self, hospital_id: int) -> None:
        """Soft delete: the hospital and its providers stop being active"""
        hospital = self._get_hospital(hospital_id)
        hospital.is_active = False
        self.db.query(Provider).filter(Provider.hospital_id == hospital_id).update(
            {"is_active": False}, synchronize_session=False
        )
        self.db.commit()
        logger.info(f"✅ Hospital {hospital_id} deactivated")

    def update_hospital(self, hospital_id: int, data: HospitalUpdate) -> Hospital:
        """Apply the supplied fields; website and description may be cleared with null"""
        hospital = self._get_hospital(hospital_id)
        changes = {}
        for field, value in data.model_dump(exclude_unset=True).items():
            if field in CLEARABLE_HOSPITAL_FIELDS:
                changes[field] = value or None
            elif value is not None:
                changes[field] = value

        new_email = changes.get("email")
        if new_email and new_email != (hospital.email or "").lower():
            taken = (
                self.db.query(Hospital.id)
                .filter(func.lower(Hospital.email) == new_email, Hospital.id != hospital_id)
                .first()
            )
            if taken:
                raise ValidationError("Another hospital already uses this email")

        for field, value in changes.items():
            setattr(hospital, field, value)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(hospital)
        logger.info(f"✅ Hospital {hospital_id} updated: {sorted(changes)}")
        return hospital

    def reactivate_hospital(self, hospital_id: int) -> None:
        hospital = self._get_hospital(hospital_id)
        hospital.is_active = True
        self.db.commit()
        logger.info(f"✅ Hospital {hospital_id} reactivated")

    def dashboard_stats(self, today: Optional[date] = None) -> DashboardStats:
        today = today or datetime.utcnow().date()

        def count(model, *filters) -> int:
            return self.db.query(func.count(model.id)).filter(*filters).scalar() or 0

        return DashboardStats(
            total_patients=count(Patient),
            total_hospitals=count(Hospital),
            active_hospitals=count(Hospital, Hospital.is_active.is_(True)),
            total_appointments=count(Appointment),
            today_appointments=count(Appointment, Appointment.appointment_date == today),
            pending_appointments=count(
                Appointment, Appointment.status == AppointmentStatus.PENDING.value
            ),
        )

    def department_types(self) -> list[str]:
        """Distinct department names across all hospitals, for the onboarding form"""
        rows = self.db.query(Department.name).distinct().order_by(Department.name).all()
        return [name for (name,) in rows]
