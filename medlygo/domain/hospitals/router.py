"""Admin hospital router"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from .schemas import (
    DashboardStats,
    DepartmentTypes,
    HospitalCreate,
    HospitalOnboardingResponse,
    HospitalUpdate,
)
from .service import HospitalService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


def get_hospital_service(db: Session = Depends(get_db)) -> HospitalService:
    """Dependency injection for HospitalService"""
    return HospitalService(db)


@router.post("/hospitals", response_model=HospitalOnboardingResponse)
async def create_hospital(
    data: HospitalCreate,
    admin: User = Depends(require_admin),
    service: HospitalService = Depends(get_hospital_service),
):
    """Create a hospital together with its provider login account"""
    logger.info(f"🏥 Admin {admin.id} onboarding hospital {data.name}")
    return service.onboard_hospital(data)


@router.patch("/hospitals/{hospital_id}")
async def update_hospital(
    hospital_id: int,
    data: HospitalUpdate,
    _admin: User = Depends(require_admin),
    service: HospitalService = Depends(get_hospital_service),
):
    """Update only the fields present in the request body"""
    service.update_hospital(hospital_id, data)
    return {"success": True}


@router.post("/hospitals/{hospital_id}/deactivate")
async def deactivate_hospital(
    hospital_id: int,
    _admin: User = Depends(require_admin),
    service: HospitalService = Depends(get_hospital_service),
):
    service.deactivate_hospital(hospital_id)
    return {"success": True}


@router.post("/hospitals/{hospital_id}/reactivate")
async def reactivate_hospital(
    hospital_id: int,
    _admin: User = Depends(require_admin),
    service: HospitalService = Depends(get_hospital_service),
):
    service.reactivate_hospital(hospital_id)
    return {"success": True}


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    _admin: User = Depends(require_admin),
    service: HospitalService = Depends(get_hospital_service),
):
    return service.dashboard_stats()


@router.get("/department-types", response_model=DepartmentTypes)
async def get_department_types(
    _admin: User = Depends(require_admin),
    service: HospitalService = Depends(get_hospital_service),
):
    return DepartmentTypes(data=service.department_types())
