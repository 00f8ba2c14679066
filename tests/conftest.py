"""
Shared pytest fixtures.

Every test gets a fresh in-memory SQLite schema seeded with two hospitals,
their departments, a provider account and two patients. Redis is treated as
unavailable unless a test installs the in-memory fake.
"""

import fnmatch
import os
from datetime import datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock

# Must be set before medlygo.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from medlygo import cache as cache_module
from medlygo.auth import Actor
from medlygo.database import Base
from medlygo.models import Department, Hospital, Patient, Provider, User, UserRole
from medlygo.services.notifications import NotificationResult
from medlygo.services.notifications.email import EmailResult
from medlygo.services.notifications.sms import SMSResult


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    """Fresh session bound to the per-test schema."""
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


def _add(db, obj):
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@pytest.fixture
def seed(db):
    """Two hospitals, one provider at the first, two patients."""
    hospital = _add(
        db,
        Hospital(
            name="Korle Bu Teaching Hospital",
            address="Guggisberg Ave",
            city="Accra",
            region="Greater Accra",
            phone="+233302665401",
            email="info@kbth.gov.gh",
            type="public",
        ),
    )
    other_hospital = _add(
        db,
        Hospital(
            name="Komfo Anokye Teaching Hospital",
            address="Bantama Rd",
            city="Kumasi",
            region="Ashanti",
            email="info@kath.gov.gh",
            type="public",
        ),
    )
    department = _add(db, Department(hospital_id=hospital.id, name="Cardiology"))
    other_department = _add(db, Department(hospital_id=other_hospital.id, name="Pediatrics"))

    provider_user = _add(
        db,
        User(
            firebase_uid="provider-uid",
            email="dr.mensah@kbth.gov.gh",
            full_name="Dr. Mensah",
            role=UserRole.PROVIDER.value,
        ),
    )
    provider = _add(db, Provider(user_id=provider_user.id, hospital_id=hospital.id))

    patient_user = _add(
        db,
        User(
            firebase_uid="patient-uid",
            email="ama@example.com",
            phone="0241234567",
            full_name="Ama Owusu",
        ),
    )
    patient = _add(db, Patient(user_id=patient_user.id))

    other_user = _add(
        db, User(firebase_uid="other-uid", email="kofi@example.com", full_name="Kofi Boateng")
    )
    other_patient = _add(db, Patient(user_id=other_user.id))

    return SimpleNamespace(
        hospital=hospital,
        other_hospital=other_hospital,
        department=department,
        other_department=other_department,
        provider_user=provider_user,
        provider=provider,
        patient_user=patient_user,
        patient=patient,
        other_user=other_user,
        other_patient=other_patient,
        patient_actor=Actor(
            user_id=patient_user.id,
            role=UserRole.PATIENT.value,
            email=patient_user.email,
            patient_id=patient.id,
        ),
        other_patient_actor=Actor(
            user_id=other_user.id,
            role=UserRole.PATIENT.value,
            email=other_user.email,
            patient_id=other_patient.id,
        ),
        provider_actor=Actor(
            user_id=provider_user.id,
            role=UserRole.PROVIDER.value,
            email=provider_user.email,
            provider_id=provider.id,
            hospital_id=hospital.id,
        ),
        other_provider_actor=Actor(
            user_id=provider_user.id,
            role=UserRole.PROVIDER.value,
            hospital_id=other_hospital.id,
        ),
    )


# ============================================================================
# REDIS FIXTURES
# ============================================================================


class FakeRedis:
    """Dict-backed stand-in for the handful of Redis calls the cache makes."""

    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value

    def scan_iter(self, match="*"):
        return [k for k in list(self.store) if fnmatch.fnmatch(k, match)]

    def delete(self, *keys):
        return sum(1 for k in keys if self.store.pop(k, None) is not None)


def _redis_unavailable():
    raise ConnectionError("Redis is not running in tests")


@pytest.fixture(autouse=True)
def no_redis(monkeypatch):
    monkeypatch.setattr(cache_module.cache, "_client_factory", _redis_unavailable)
    monkeypatch.setattr(cache_module.cache, "redis_client", None)


@pytest.fixture
def fake_redis(monkeypatch):
    client = FakeRedis()
    monkeypatch.setattr(cache_module.cache, "redis_client", client)
    return client


# ============================================================================
# NOTIFICATION FIXTURES
# ============================================================================


def delivered_result(email: bool = False) -> NotificationResult:
    return NotificationResult(
        sms=SMSResult(success=True, provider="hubtel", message_id="hubtel-1"),
        email=EmailResult(success=True, message_id="resend-1") if email else None,
    )


@pytest.fixture
def notifier():
    """Notifier that reports every reminder as delivered."""
    return AsyncMock(side_effect=lambda *args, **kwargs: delivered_result())


@pytest.fixture
def fixed_now():
    return datetime(2026, 3, 10, 8, 0, 0)
