"""Appointment routers - patient and provider endpoints"""

import asyncio
import logging
from datetime import date
from typing import Optional

from arq import create_pool
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ...auth import Actor, get_patient_actor, get_provider_actor
from ...database import get_db
from .schemas import (
    ActionResult,
    AppointmentCreate,
    CancelRequest,
    RejectRequest,
    SuggestionResponse,
    SuggestRequest,
)
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])
provider_router = APIRouter(prefix="/provider/appointments", tags=["Provider Appointments"])


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db)


def to_response(result: ActionResult):
    """Failed results keep their body shape but carry the error's HTTP status"""
    if result.success:
        return result.model_dump(exclude_none=True)
    return JSONResponse(status_code=result.status_code, content=result.model_dump(exclude_none=True))


async def enqueue_notification(appointment_id: int, notification_type: str) -> None:
    """Queue an appointment SMS/email; a queue outage never fails the action that triggered it"""
    from ...worker import get_redis_settings

    try:
        pool = await asyncio.wait_for(create_pool(get_redis_settings()), timeout=5.0)
        try:
            job = await pool.enqueue_job(
                "send_appointment_notification_task", appointment_id, notification_type
            )
            logger.info(f"📋 {notification_type} job queued: {job.job_id if job else 'duplicate'}")
        finally:
            await pool.close()
    except Exception as e:
        logger.warning(f"⚠️ Could not queue {notification_type} for {appointment_id}: {e}")


# ============================================================================
# PATIENT ACTIONS
# ============================================================================


@router.get("")
async def list_my_appointments(
    status: Optional[str] = Query(None),
    actor: Actor = Depends(get_patient_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Get the calling patient's appointments, newest first"""
    return service.list_patient_appointments(actor, status)


@router.post("")
async def create_appointment(
    data: AppointmentCreate,
    actor: Actor = Depends(get_patient_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Book an appointment; it starts as 'pending' until the hospital reviews it"""
    result = service.create_appointment(
        actor,
        hospital_id=data.hospital_id,
        department_id=data.department_id,
        appointment_date=data.appointment_date,
        start_time=data.start_time,
        reason=data.reason,
    )
    if result.success:
        await enqueue_notification(result.appointment_id, "booking_confirmation")
    return to_response(result)


@router.post("/{appointment_id}/cancel")
async def cancel_appointment(
    appointment_id: int,
    data: Optional[CancelRequest] = None,
    actor: Actor = Depends(get_patient_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    result = service.cancel_appointment(actor, appointment_id, data.reason if data else None)
    if result.success:
        await enqueue_notification(appointment_id, "cancellation")
    return to_response(result)


@router.post("/{appointment_id}/suggestion")
async def respond_to_suggestion(
    appointment_id: int,
    data: SuggestionResponse,
    actor: Actor = Depends(get_patient_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Accept or decline the hospital's suggested slot"""
    result = service.respond_to_suggestion(actor, appointment_id, data.accept)
    if result.success:
        await enqueue_notification(appointment_id, "reschedule" if data.accept else "cancellation")
    return to_response(result)


# ============================================================================
# PROVIDER ACTIONS
# ============================================================================


@provider_router.get("")
async def list_hospital_appointments(
    status: Optional[str] = Query(None),
    on_date: Optional[date] = Query(None, alias="date"),
    actor: Actor = Depends(get_provider_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Get appointments for the provider's hospital, optionally for a single day"""
    return service.list_hospital_appointments(actor, status, on_date)


@provider_router.post("/{appointment_id}/approve")
async def approve_appointment(
    appointment_id: int,
    actor: Actor = Depends(get_provider_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    return to_response(service.approve_appointment(actor, appointment_id))


@provider_router.post("/{appointment_id}/reject")
async def reject_appointment(
    appointment_id: int,
    data: RejectRequest,
    actor: Actor = Depends(get_provider_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    return to_response(service.reject_appointment(actor, appointment_id, data.rejection_reason))


@provider_router.post("/{appointment_id}/suggest")
async def suggest_alternative(
    appointment_id: int,
    data: SuggestRequest,
    actor: Actor = Depends(get_provider_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    result = service.suggest_alternative(
        actor, appointment_id, data.suggested_date, data.suggested_time, data.reason
    )
    return to_response(result)
