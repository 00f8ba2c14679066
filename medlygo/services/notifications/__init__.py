"""
Unified Notification Service
Handles both SMS and email for appointment events and records every attempt
in the notifications table (the reminder sweep de-duplicates against it)
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import (
    Appointment,
    Notification,
    NotificationChannel,
    NotificationStatus,
    ReminderType,
)
from ...shared.validators import format_display_date, format_display_time
from .email import EmailResult, send_email
from .sms import SMSResult, send_sms
from .templates import EMAIL_TEMPLATES, SMS_TEMPLATES

logger = logging.getLogger(__name__)

NOTIFICATION_TYPES = (
    "booking_confirmation",
    "reminder_48h",
    "reminder_24h",
    "reminder_2h",
    "cancellation",
    "reschedule",
)
REMINDER_TYPES = {t.value for t in ReminderType}


@dataclass
class AppointmentPayload:
    appointment_id: int
    patient_name: str
    patient_phone: Optional[str]
    patient_email: Optional[str]
    hospital: str
    hospital_address: str
    department: str
    date: str
    time: str
    reference_number: str
    preparation_instructions: Optional[str] = None


@dataclass
class NotificationResult:
    sms: Optional[SMSResult] = None
    email: Optional[EmailResult] = None
    errors: list = field(default_factory=list)

    @property
    def delivered(self) -> bool:
        return bool((self.sms and self.sms.success) or (self.email and self.email.success))


def build_payload(appointment: Appointment) -> AppointmentPayload:
    """Flatten an appointment and its patient/hospital/department into template fields"""
    user = appointment.patient.user
    hospital = appointment.hospital
    return AppointmentPayload(
        appointment_id=appointment.id,
        patient_name=user.full_name or "there",
        patient_phone=user.phone,
        patient_email=user.email,
        hospital=hospital.name,
        hospital_address=hospital.address,
        department=appointment.department.name,
        date=format_display_date(appointment.appointment_date),
        time=format_display_time(appointment.start_time),
        reference_number=appointment.reference_number,
        preparation_instructions=appointment.preparation_instructions,
    )


async def send_appointment_notification(
    db: Session,
    notification_type: str,
    payload: AppointmentPayload,
    send_sms_message: bool = True,
    send_email_message: bool = True,
) -> NotificationResult:
    """
    Send an appointment notification over SMS and/or email.

    A channel is attempted only when requested, the recipient has an address
    for it, and a template exists for the type. Each attempt is logged.
    """
    if notification_type not in NOTIFICATION_TYPES:
        raise ValueError(f"Unknown notification type: {notification_type}")

    result = NotificationResult()
    fields = asdict(payload)
    sms_message = None
    email_subject = None

    sms_template = SMS_TEMPLATES.get(notification_type)
    if send_sms_message and payload.patient_phone and sms_template:
        sms_message = sms_template(fields)
        result.sms = await send_sms(payload.patient_phone, sms_message)
    elif send_sms_message and not payload.patient_phone:
        logger.debug(f"⚠️ No phone number for {notification_type} to appointment {payload.appointment_id}")

    email_template = EMAIL_TEMPLATES.get(notification_type)
    if send_email_message and payload.patient_email and email_template:
        email_subject, mjml_content = email_template(fields)
        result.email = await send_email(payload.patient_email, email_subject, mjml_content)

    log_notification(db, notification_type, payload, result, sms_message, email_subject)
    return result


def log_notification(
    db: Session,
    notification_type: str,
    payload: AppointmentPayload,
    result: NotificationResult,
    sms_message: Optional[str],
    email_subject: Optional[str],
) -> None:
    """Persist one row per attempted channel; a logging failure never fails the send"""
    now = datetime.utcnow()
    reminder_type = notification_type if notification_type in REMINDER_TYPES else None

    attempts = []
    if result.sms is not None:
        attempts.append((NotificationChannel.SMS, result.sms, payload.patient_phone, sms_message))
    if result.email is not None:
        attempts.append((NotificationChannel.EMAIL, result.email, payload.patient_email, email_subject))

    try:
        for channel, outcome, recipient, message in attempts:
            db.add(
                Notification(
                    appointment_id=payload.appointment_id,
                    channel=channel.value,
                    status=(NotificationStatus.SENT if outcome.success else NotificationStatus.FAILED).value,
                    reminder_type=reminder_type,
                    notification_type=notification_type,
                    recipient=recipient or "",
                    message=message or "",
                    provider=outcome.provider,
                    provider_message_id=outcome.message_id,
                    error_message=outcome.error,
                    scheduled_for=now,
                    sent_at=now if outcome.success else None,
                )
            )
        db.commit()
    except Exception as e:
        db.rollback()
        result.errors.append(str(e))
        logger.error(f"❌ Failed to log {notification_type} notification: {e}")
