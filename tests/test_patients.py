"""
Tests for patient onboarding, profile edits and account deletion.
"""

from datetime import date, datetime, time, timedelta

import pytest
from pydantic import ValidationError as PydanticValidationError

from medlygo.domain.patients.schemas import PatientOnboarding, PatientProfileUpdate
from medlygo.domain.patients.service import PatientService
from medlygo.errors import PatientProfileMissing, StoreError, Unauthorized
from medlygo.models import Appointment, Notification, Patient, User, UserRole


class FakeAccountAdmin:
    """Records account deletions instead of talking to Firebase."""

    def __init__(self, fail_delete: bool = False):
        self.fail_delete = fail_delete
        self.deleted = []

    def delete_user(self, uid):
        if self.fail_delete:
            raise RuntimeError("USER_NOT_FOUND")
        self.deleted.append(uid)


@pytest.fixture
def accounts():
    return FakeAccountAdmin()


@pytest.fixture
def service(db, accounts):
    return PatientService(db, account_admin=accounts)


@pytest.fixture
def new_user(db):
    """A freshly signed-up user with no patient profile yet."""
    user = User(firebase_uid="new-uid", email="esi@example.com", full_name="Esi")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


class TestPatientSchemas:
    """Tests for profile input normalisation."""

    def test_normalises_fields(self):
        data = PatientOnboarding(
            phone="024 123 4567",
            date_of_birth="1990-05-17",
            ghana_card_id=" gha-123456789-0 ",
            emergency_contact_phone="0201112222",
        )

        assert data.phone == "+233241234567"
        assert data.date_of_birth == date(1990, 5, 17)
        assert data.ghana_card_id == "GHA-123456789-0"
        assert data.emergency_contact_phone == "+233201112222"

    def test_onboarding_requires_phone(self):
        with pytest.raises(PydanticValidationError):
            PatientOnboarding(gender="female")

    def test_rejects_future_birth_date(self):
        tomorrow = datetime.utcnow().date() + timedelta(days=1)
        with pytest.raises(PydanticValidationError):
            PatientProfileUpdate(date_of_birth=tomorrow.isoformat())

    def test_rejects_unknown_gender(self):
        with pytest.raises(PydanticValidationError):
            PatientProfileUpdate(gender="unknown")


class TestOnboard:
    """Tests for PatientService.onboard."""

    def test_creates_profile(self, db, service, new_user):
        """Test that onboarding creates the patient row and fills the user's contact details."""
        profile = service.onboard(
            new_user,
            PatientOnboarding(full_name="Esi Mensah", phone="0241112222", gender="Female"),
        )

        patient = db.query(Patient).filter(Patient.user_id == new_user.id).one()
        assert profile.id == patient.id
        assert profile.full_name == "Esi Mensah"
        assert profile.phone == "+233241112222"
        assert patient.gender == "female"

    def test_repeated_onboarding_updates_existing_profile(self, db, service, new_user):
        service.onboard(new_user, PatientOnboarding(phone="0241112222", address="Osu"))
        service.onboard(new_user, PatientOnboarding(phone="0241112222", address="Labone"))

        patients = db.query(Patient).filter(Patient.user_id == new_user.id).all()
        assert len(patients) == 1
        assert patients[0].address == "Labone"

    def test_provider_cannot_onboard_as_patient(self, seed, service):
        with pytest.raises(Unauthorized):
            service.onboard(seed.provider_user, PatientOnboarding(phone="0241112222"))


class TestProfile:
    """Tests for reading and editing the profile."""

    def test_get_profile(self, seed, service):
        profile = service.get_profile(seed.patient_user)

        assert profile.id == seed.patient.id
        assert profile.full_name == "Ama Owusu"
        assert profile.email == "ama@example.com"

    def test_get_profile_missing(self, service, new_user):
        with pytest.raises(PatientProfileMissing):
            service.get_profile(new_user)

    def test_update_only_supplied_fields(self, db, seed, service):
        """Test that a partial update leaves other fields untouched."""
        seed.patient.address = "Cantonments"
        db.commit()

        profile = service.update_profile(
            seed.patient_user, PatientProfileUpdate(emergency_contact_name="Kwame Owusu")
        )

        assert profile.emergency_contact_name == "Kwame Owusu"
        assert profile.address == "Cantonments"
        assert profile.full_name == "Ama Owusu"

    def test_null_full_name_keeps_name(self, seed, service):
        profile = service.update_profile(seed.patient_user, PatientProfileUpdate(full_name=None))

        assert profile.full_name == "Ama Owusu"


class TestDeleteAccount:
    """Tests for PatientService.delete_account."""

    @pytest.fixture
    def booked(self, db, seed):
        appointment = Appointment(
            reference_number="MG-20260310-DEL1",
            patient_id=seed.patient.id,
            hospital_id=seed.hospital.id,
            department_id=seed.department.id,
            appointment_date=date(2026, 3, 12),
            start_time=time(9, 0),
            status="confirmed",
        )
        db.add(appointment)
        db.commit()
        db.add(
            Notification(
                appointment_id=appointment.id,
                channel="sms",
                status="sent",
                notification_type="booking_confirmation",
                recipient="233241234567",
                message="Booked",
                scheduled_for=datetime(2026, 3, 10),
            )
        )
        db.commit()
        return appointment

    def test_deletes_data_then_login(self, db, seed, service, accounts, booked):
        """Test that the patient, user, appointments and login account are all removed."""
        patient_id = seed.patient.id
        user_id = seed.patient_user.id

        service.delete_account(seed.patient_user)

        assert db.query(Patient).filter(Patient.id == patient_id).count() == 0
        assert db.query(User).filter(User.id == user_id).count() == 0
        assert db.query(Appointment).filter(Appointment.patient_id == patient_id).count() == 0
        assert db.query(Notification).count() == 0
        assert accounts.deleted == ["patient-uid"]

    def test_other_patients_untouched(self, db, seed, service, booked):
        service.delete_account(seed.patient_user)

        assert db.query(Patient).filter(Patient.id == seed.other_patient.id).count() == 1

    def test_user_without_profile(self, db, service, accounts, new_user):
        """Test that a user who never onboarded can still delete their account."""
        user_id = new_user.id

        service.delete_account(new_user)

        assert db.query(User).filter(User.id == user_id).count() == 0
        assert accounts.deleted == ["new-uid"]

    def test_login_deletion_failure(self, db, seed):
        """Test that a failed login removal is reported after the data is gone."""
        accounts = FakeAccountAdmin(fail_delete=True)
        user_id = seed.patient_user.id

        with pytest.raises(StoreError, match="authentication"):
            PatientService(db, account_admin=accounts).delete_account(seed.patient_user)

        assert db.query(User).filter(User.id == user_id).count() == 0

    def test_provider_account_refused(self, db, seed, service, accounts):
        with pytest.raises(Unauthorized):
            service.delete_account(seed.provider_user)

        assert accounts.deleted == []
        assert db.query(User).filter(User.role == UserRole.PROVIDER.value).count() == 1
