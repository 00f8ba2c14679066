"""
Reminder scheduler
Runs once per trigger (hourly cron). For each reminder type, selects confirmed
appointments inside a window around now + offset, drops those that already
received that reminder by SMS, and dispatches the rest one by one.

Appointment date/time columns are naive and compared against naive UTC "now".
"""

import logging
import time as time_module
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

from sqlalchemy.orm import Session, joinedload

from ..errors import GatewayError
from ..models import (
    Appointment,
    AppointmentStatus,
    Notification,
    NotificationChannel,
    NotificationStatus,
    Patient,
    ReminderType,
)
from .notifications import NotificationResult, build_payload, send_appointment_notification

logger = logging.getLogger(__name__)

REMINDABLE_STATUSES = (AppointmentStatus.CONFIRMED.value, AppointmentStatus.SCHEDULED.value)


@dataclass(frozen=True)
class ReminderWindow:
    reminder_type: ReminderType
    offset: timedelta
    half_width: timedelta
    send_email: bool

    def bounds(self, now: datetime) -> tuple[datetime, datetime]:
        center = now + self.offset
        return center - self.half_width, center + self.half_width


# Processing order: most urgent first
REMINDER_WINDOWS = (
    ReminderWindow(ReminderType.REMINDER_2H, timedelta(hours=2), timedelta(minutes=30), False),
    ReminderWindow(ReminderType.REMINDER_24H, timedelta(hours=24), timedelta(hours=1), True),
    ReminderWindow(ReminderType.REMINDER_48H, timedelta(hours=48), timedelta(hours=1), False),
)

Notifier = Callable[..., Awaitable[NotificationResult]]


def appointment_datetime(appointment: Appointment) -> datetime:
    return datetime.combine(appointment.appointment_date, appointment.start_time)


def find_due_appointments(
    db: Session, reminder_type: ReminderType, window_start: datetime, window_end: datetime
) -> list[Appointment]:
    """
    Appointments inside [window_start, window_end] that have not yet had this
    reminder delivered by SMS.
    """
    # Coarse calendar-day filter in SQL, exact timestamp filter in Python
    candidates = (
        db.query(Appointment)
        .options(
            joinedload(Appointment.patient).joinedload(Patient.user),
            joinedload(Appointment.hospital),
            joinedload(Appointment.department),
        )
        .filter(
            Appointment.status.in_(REMINDABLE_STATUSES),
            Appointment.appointment_date >= window_start.date(),
            Appointment.appointment_date <= window_end.date(),
        )
        .all()
    )
    in_window = [a for a in candidates if window_start <= appointment_datetime(a) <= window_end]
    if not in_window:
        return []

    already_sent = {
        row.appointment_id
        for row in db.query(Notification.appointment_id)
        .filter(
            Notification.appointment_id.in_([a.id for a in in_window]),
            Notification.channel == NotificationChannel.SMS.value,
            Notification.status == NotificationStatus.SENT.value,
            Notification.reminder_type == reminder_type.value,
        )
        .all()
    }
    return [a for a in in_window if a.id not in already_sent]


async def run_reminder_sweep(
    db: Session,
    now: Optional[datetime] = None,
    notifier: Optional[Notifier] = None,
    budget_seconds: Optional[float] = None,
    clock: Callable[[], float] = time_module.monotonic,
) -> dict:
    """
    Run one sweep over all reminder windows.

    Returns:
        {"timestamp": ..., "partial": bool,
         "results": {"reminder_48h": {"sent", "failed", "skipped"}, ...}}
    """
    now = now or datetime.utcnow()
    notifier = notifier or send_appointment_notification
    deadline = clock() + budget_seconds if budget_seconds is not None else None

    results = {w.reminder_type.value: {"sent": 0, "failed": 0, "skipped": 0} for w in REMINDER_WINDOWS}
    partial = False

    for window in REMINDER_WINDOWS:
        reminder_type = window.reminder_type.value
        window_start, window_end = window.bounds(now)
        appointments = find_due_appointments(db, window.reminder_type, window_start, window_end)
        if appointments:
            logger.info(f"⏰ {len(appointments)} appointment(s) due for {reminder_type}")

        for index, appointment in enumerate(appointments):
            if deadline is not None and clock() >= deadline:
                skipped = len(appointments) - index
                results[reminder_type]["skipped"] += skipped
                partial = True
                logger.warning(f"⚠️ Sweep budget exhausted, {skipped} {reminder_type} left for next run")
                break

            try:
                outcome = await notifier(
                    db,
                    reminder_type,
                    build_payload(appointment),
                    send_sms_message=True,
                    send_email_message=window.send_email,
                )
                if not outcome.delivered:
                    raise GatewayError(
                        (outcome.sms.error if outcome.sms else None)
                        or (outcome.email.error if outcome.email else None)
                        or "No channel available for recipient"
                    )
                results[reminder_type]["sent"] += 1
            except Exception as e:
                results[reminder_type]["failed"] += 1
                logger.error(f"❌ Failed to send {reminder_type} for appointment {appointment.id}: {e}")

    summary = {"timestamp": now.isoformat(), "partial": partial, "results": results}
    logger.info(f"📊 Reminder sweep complete: {summary}")
    return summary
