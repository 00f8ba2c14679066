"""
HTTP tests for the appointment and admin routers.
"""

import importlib
from datetime import date, datetime, time, timedelta
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from medlygo.auth import get_current_user, get_patient_actor, get_provider_actor
from medlygo.database import get_db
from medlygo.domain.hospitals.router import get_hospital_service
from medlygo.domain.hospitals.service import HospitalService
from medlygo.domain.patients.router import get_patient_service
from medlygo.domain.patients.service import PatientService
from medlygo.main import app
from medlygo.models import Appointment, AppointmentStatus, Hospital, Patient, User

TODAY = datetime.utcnow().date()
FUTURE = TODAY + timedelta(days=7)

# The package re-exports the APIRouter under the submodule's name
appointments_routes = importlib.import_module("medlygo.domain.appointments.router")


@pytest.fixture
def enqueue(monkeypatch):
    mock = AsyncMock()
    monkeypatch.setattr(appointments_routes, "enqueue_notification", mock)
    return mock


@pytest.fixture
def client(db, seed, enqueue):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_patient_actor] = lambda: seed.patient_actor
    app.dependency_overrides[get_provider_actor] = lambda: seed.provider_actor
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def appointment(db, seed):
    appointment = Appointment(
        reference_number="MG-20260310-API1",
        patient_id=seed.patient.id,
        hospital_id=seed.hospital.id,
        department_id=seed.department.id,
        appointment_date=FUTURE,
        start_time=time(10, 0),
        status=AppointmentStatus.PENDING.value,
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


def status_of(db, appointment_id):
    db.expire_all()
    return db.query(Appointment).filter(Appointment.id == appointment_id).one().status


class TestPatientEndpoints:
    """Tests for /appointments."""

    def test_create(self, client, seed, enqueue):
        """Test that booking returns the reference and queues the confirmation."""
        response = client.post(
            "/appointments",
            json={
                "hospital_id": seed.hospital.id,
                "department_id": seed.department.id,
                "appointment_date": FUTURE.isoformat(),
                "start_time": "14:00",
                "reason": "Check-up",
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["reference_number"].startswith("MG-")
        enqueue.assert_awaited_once_with(body["appointment_id"], "booking_confirmation")

    def test_create_in_the_past(self, client, seed, enqueue):
        """Test that past dates are rejected by validation."""
        response = client.post(
            "/appointments",
            json={
                "hospital_id": seed.hospital.id,
                "department_id": seed.department.id,
                "appointment_date": (TODAY - timedelta(days=1)).isoformat(),
                "start_time": "14:00",
            },
        )

        assert response.status_code == 422
        enqueue.assert_not_awaited()

    def test_create_bad_time(self, client, seed):
        """Test that malformed times are rejected."""
        response = client.post(
            "/appointments",
            json={
                "hospital_id": seed.hospital.id,
                "department_id": seed.department.id,
                "appointment_date": FUTURE.isoformat(),
                "start_time": "2pm",
            },
        )

        assert response.status_code == 422

    def test_create_failure_carries_status(self, client, seed, enqueue):
        """Test that a failed booking answers with the error's status and code."""
        response = client.post(
            "/appointments",
            json={
                "hospital_id": seed.hospital.id,
                "department_id": seed.other_department.id,
                "appointment_date": FUTURE.isoformat(),
                "start_time": "14:00",
            },
        )

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": "Department not found for this hospital",
            "code": "not_found",
        }
        enqueue.assert_not_awaited()

    def test_list(self, client, appointment):
        """Test that the patient sees their appointments."""
        response = client.get("/appointments")

        assert response.status_code == 200
        assert [a["reference_number"] for a in response.json()] == ["MG-20260310-API1"]

    def test_cancel_without_body(self, client, db, appointment, enqueue):
        """Test that cancelling works with no request body and queues the notice."""
        response = client.post(f"/appointments/{appointment.id}/cancel")

        assert response.status_code == 200
        assert status_of(db, appointment.id) == "cancelled"
        enqueue.assert_awaited_once_with(appointment.id, "cancellation")

    def test_cancel_twice(self, client, appointment, enqueue):
        """Test that a second cancel is a not-found no-match and sends nothing more."""
        client.post(f"/appointments/{appointment.id}/cancel", json={"reason": "Travelling"})
        response = client.post(f"/appointments/{appointment.id}/cancel")

        assert response.status_code == 404
        assert response.json()["code"] == "not_found"
        assert enqueue.await_count == 1

    @pytest.mark.parametrize(
        "accept, expected_status, notification_type",
        [(True, "confirmed", "reschedule"), (False, "cancelled", "cancellation")],
    )
    def test_respond_to_suggestion(
        self, client, db, appointment, enqueue, accept, expected_status, notification_type
    ):
        """Test that answering a suggestion queues the matching notice."""
        appointment.status = AppointmentStatus.SUGGESTED.value
        appointment.suggested_date = FUTURE + timedelta(days=1)
        appointment.suggested_time = time(11, 0)
        db.commit()

        response = client.post(f"/appointments/{appointment.id}/suggestion", json={"accept": accept})

        assert response.status_code == 200
        assert status_of(db, appointment.id) == expected_status
        enqueue.assert_awaited_once_with(appointment.id, notification_type)

    def test_respond_without_suggestion_sends_nothing(self, client, appointment, enqueue):
        response = client.post(f"/appointments/{appointment.id}/suggestion", json={"accept": True})

        assert response.status_code == 404
        enqueue.assert_not_awaited()

    def test_unauthenticated(self, db, seed):
        """Test that requests without a bearer token are rejected."""
        app.dependency_overrides[get_db] = lambda: db
        try:
            response = TestClient(app).get("/appointments")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 401


class TestProviderEndpoints:
    """Tests for /provider/appointments."""

    def test_list(self, client, appointment):
        """Test that the provider sees their hospital's appointments."""
        response = client.get("/provider/appointments", params={"status": "pending"})

        assert response.status_code == 200
        assert len(response.json()) == 1

    def test_list_for_one_day(self, client, db, seed, appointment):
        """Test that the date query parameter narrows the list to that day."""
        db.add(
            Appointment(
                reference_number="MG-20260310-API2",
                patient_id=seed.patient.id,
                hospital_id=seed.hospital.id,
                department_id=seed.department.id,
                appointment_date=FUTURE + timedelta(days=1),
                start_time=time(9, 0),
                status=AppointmentStatus.PENDING.value,
            )
        )
        db.commit()

        response = client.get("/provider/appointments", params={"date": FUTURE.isoformat()})

        assert response.status_code == 200
        assert [a["reference_number"] for a in response.json()] == ["MG-20260310-API1"]

    def test_list_bad_date(self, client):
        response = client.get("/provider/appointments", params={"date": "tomorrow"})

        assert response.status_code == 422

    def test_approve(self, client, db, appointment):
        response = client.post(f"/provider/appointments/{appointment.id}/approve")

        assert response.status_code == 200
        assert status_of(db, appointment.id) == "confirmed"

    def test_approve_twice_conflicts(self, client, appointment):
        """Test that reviewing a non-pending appointment is a conflict."""
        client.post(f"/provider/appointments/{appointment.id}/approve")
        response = client.post(f"/provider/appointments/{appointment.id}/approve")

        assert response.status_code == 409
        assert response.json()["code"] == "invalid_state"

    def test_reject_requires_reason(self, client, appointment):
        response = client.post(
            f"/provider/appointments/{appointment.id}/reject", json={"rejection_reason": ""}
        )

        assert response.status_code == 422

    def test_suggest(self, client, db, appointment):
        response = client.post(
            f"/provider/appointments/{appointment.id}/suggest",
            json={"suggested_date": (FUTURE + timedelta(days=2)).isoformat(), "suggested_time": "09:30"},
        )

        assert response.status_code == 200
        assert status_of(db, appointment.id) == "suggested"

    def test_other_hospital(self, client, seed, appointment):
        """Test that another hospital's provider gets 403."""
        app.dependency_overrides[get_provider_actor] = lambda: seed.other_provider_actor

        response = client.post(f"/provider/appointments/{appointment.id}/approve")

        assert response.status_code == 403


class FakeAccountAdmin:
    def create_user(self, email, password, display_name):
        return "uid-admin-test"

    def delete_user(self, uid):
        pass


class TestAdminEndpoints:
    """Tests for /admin."""

    @pytest.fixture
    def admin_client(self, client, db, seed):
        seed.provider_user.role = "admin"
        db.commit()
        app.dependency_overrides[get_current_user] = lambda: seed.provider_user
        app.dependency_overrides[get_hospital_service] = lambda: HospitalService(
            db, account_admin=FakeAccountAdmin()
        )
        return client

    def test_create_hospital(self, admin_client):
        response = admin_client.post(
            "/admin/hospitals",
            json={
                "name": "Tema General Hospital",
                "address": "Community 9",
                "city": "Tema",
                "region": "Greater Accra",
                "phone": "0303202000",
                "email": "admin@temageneral.gov.gh",
                "type": "public",
                "departments": ["OPD"],
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["credentials"]["email"] == "admin@temageneral.gov.gh"

    def test_deactivate_unknown_hospital(self, admin_client):
        """Test that domain errors map to their HTTP status."""
        response = admin_client.post("/admin/hospitals/9999/deactivate")

        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    def test_create_hospital_bad_email(self, admin_client):
        response = admin_client.post(
            "/admin/hospitals",
            json={
                "name": "Tema General Hospital",
                "address": "Community 9",
                "city": "Tema",
                "region": "Greater Accra",
                "phone": "0303202000",
                "email": "admin@temageneral..gov.gh",
                "type": "public",
            },
        )

        assert response.status_code == 422

    def test_update_hospital(self, admin_client, db, seed):
        response = admin_client.patch(
            f"/admin/hospitals/{seed.hospital.id}", json={"description": "Teaching hospital"}
        )

        assert response.status_code == 200
        db.expire_all()
        hospital = db.get(Hospital, seed.hospital.id)
        assert hospital.description == "Teaching hospital"
        assert hospital.name == "Korle Bu Teaching Hospital"

    def test_department_types(self, admin_client):
        response = admin_client.get("/admin/department-types")

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": ["Cardiology", "Pediatrics"]}

    def test_stats(self, admin_client):
        response = admin_client.get("/admin/stats")

        assert response.status_code == 200
        assert response.json()["total_hospitals"] == 2

    def test_non_admin_forbidden(self, client, seed):
        """Test that a patient cannot reach admin routes."""
        app.dependency_overrides[get_current_user] = lambda: seed.patient_user

        response = client.get("/admin/stats")

        assert response.status_code == 403


class FakePatientAccountAdmin:
    def __init__(self):
        self.deleted = []

    def delete_user(self, uid):
        self.deleted.append(uid)


class TestPatientProfileEndpoints:
    """Tests for /patients."""

    @pytest.fixture
    def new_user(self, db):
        user = User(firebase_uid="signup-uid", email="yaw@example.com", full_name="Yaw Asante")
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @pytest.fixture
    def accounts(self):
        return FakePatientAccountAdmin()

    @pytest.fixture
    def patient_client(self, db, seed, new_user, accounts, enqueue):
        """Client authenticated as a new user, with real patient-actor resolution."""
        app.dependency_overrides[get_db] = lambda: db
        app.dependency_overrides[get_current_user] = lambda: new_user
        app.dependency_overrides[get_patient_service] = lambda: PatientService(
            db, account_admin=accounts
        )
        yield TestClient(app)
        app.dependency_overrides.clear()

    def booking(self, seed):
        return {
            "hospital_id": seed.hospital.id,
            "department_id": seed.department.id,
            "appointment_date": FUTURE.isoformat(),
            "start_time": "14:00",
        }

    def test_new_user_can_book_after_onboarding(self, patient_client, seed, enqueue):
        """Test that a fresh sign-up needs onboarding before the first booking."""
        before = patient_client.post("/appointments", json=self.booking(seed))
        assert before.status_code == 404

        onboarded = patient_client.post(
            "/patients/onboarding",
            json={"phone": "0209998888", "gender": "Male", "date_of_birth": "1988-02-01"},
        )
        assert onboarded.status_code == 200
        assert onboarded.json()["phone"] == "+233209998888"

        after = patient_client.post("/appointments", json=self.booking(seed))
        assert after.status_code == 200
        assert after.json()["success"] is True
        enqueue.assert_awaited_once()

    def test_profile_before_onboarding(self, patient_client):
        response = patient_client.get("/patients/me")

        assert response.status_code == 404
        assert response.json()["code"] == "patient_profile_missing"

    def test_get_and_update_profile(self, patient_client):
        patient_client.post("/patients/onboarding", json={"phone": "0209998888"})

        updated = patient_client.patch("/patients/me", json={"address": "East Legon"})
        profile = patient_client.get("/patients/me")

        assert updated.status_code == 200
        assert profile.json()["address"] == "East Legon"
        assert profile.json()["full_name"] == "Yaw Asante"

    def test_delete_account(self, patient_client, db, new_user, accounts):
        patient_client.post("/patients/onboarding", json={"phone": "0209998888"})
        user_id = new_user.id

        response = patient_client.delete("/patients/me")

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert db.query(User).filter(User.id == user_id).count() == 0
        assert db.query(Patient).filter(Patient.user_id == user_id).count() == 0
        assert accounts.deleted == ["signup-uid"]
