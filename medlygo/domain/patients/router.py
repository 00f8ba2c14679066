"""Patient profile router - onboarding, profile and account deletion"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import PatientOnboarding, PatientProfile, PatientProfileUpdate
from .service import PatientService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/patients", tags=["Patients"])


def get_patient_service(db: Session = Depends(get_db)) -> PatientService:
    """Dependency injection for PatientService"""
    return PatientService(db)


@router.post("/onboarding", response_model=PatientProfile)
async def complete_onboarding(
    data: PatientOnboarding,
    user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service),
):
    """Create (or redo) the caller's patient profile; required before booking"""
    return service.onboard(user, data)


@router.get("/me", response_model=PatientProfile)
async def get_my_profile(
    user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service),
):
    return service.get_profile(user)


@router.patch("/me", response_model=PatientProfile)
async def update_my_profile(
    data: PatientProfileUpdate,
    user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service),
):
    return service.update_profile(user, data)


@router.delete("/me")
async def delete_my_account(
    user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service),
):
    """Permanently delete the caller's patient data and login account"""
    logger.info(f"🗑️ Account deletion requested by user {user.id}")
    service.delete_account(user)
    return {"success": True}
