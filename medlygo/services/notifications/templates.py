"""
SMS texts and MJML email templates for appointment notifications
Reminder SMS texts keep their "in 2 days" / "tomorrow" / "in 2 hours" wording;
de-duplication relies on the structured reminder_type column, not on this text.
"""

from typing import Optional

from ...config import FRONTEND_URL

THEME = {
    "primary": "#1E6091",
    "primary_dark": "#184D74",
    "background": "#F1F5F9",
    "card_bg": "#FFFFFF",
    "text_primary": "#0F172A",
    "text_secondary": "#334155",
    "border": "#E2E8F0",
}


# ============================================
# SMS
# ============================================


def booking_confirmation_sms(p: dict) -> str:
    return (
        f"Hi {p['patient_name']}, your appointment request has been received!\n\n"
        f"Hospital: {p['hospital']}\n"
        f"Department: {p['department']}\n"
        f"Date: {p['date']}\n"
        f"Time: {p['time']}\n"
        f"Ref: {p['reference_number']}\n\n"
        f"To reschedule or cancel, visit medlygo.com or reply HELP.\n\n"
        f"- MedlyGo"
    )


def reminder_48h_sms(p: dict) -> str:
    return (
        f"Reminder: {p['patient_name']}, you have an appointment in 2 days.\n\n"
        f"{p['hospital']}\n"
        f"{p['date']} at {p['time']}\n\n"
        f"Reply YES to confirm, or visit medlygo.com to reschedule.\n\n"
        f"- MedlyGo"
    )


def reminder_24h_sms(p: dict) -> str:
    return (
        f"Reminder: Your appointment is tomorrow!\n\n"
        f"{p['hospital']}\n"
        f"{p['department']}\n"
        f"{p['date']} at {p['time']}\n\n"
        f"Please arrive 15 minutes early. Bring your Ghana Card and any relevant medical documents.\n\n"
        f"- MedlyGo"
    )


def reminder_2h_sms(p: dict) -> str:
    return (
        f"{p['patient_name']}, your appointment at {p['hospital']} is in 2 hours at {p['time']}.\n\n"
        f"See you soon!\n"
        f"- MedlyGo"
    )


def cancellation_sms(p: dict) -> str:
    return (
        f"Hi {p['patient_name']}, your appointment at {p['hospital']} on {p['date']} has been cancelled.\n\n"
        f"To book a new appointment, visit medlygo.com\n\n"
        f"- MedlyGo"
    )


def reschedule_sms(p: dict) -> str:
    return (
        f"Hi {p['patient_name']}, your appointment has been rescheduled.\n\n"
        f"{p['hospital']}\n"
        f"New date: {p['date']} at {p['time']}\n\n"
        f"- MedlyGo"
    )


SMS_TEMPLATES = {
    "booking_confirmation": booking_confirmation_sms,
    "reminder_48h": reminder_48h_sms,
    "reminder_24h": reminder_24h_sms,
    "reminder_2h": reminder_2h_sms,
    "cancellation": cancellation_sms,
    "reschedule": reschedule_sms,
}


# ============================================
# EMAIL (MJML)
# ============================================


def get_base_template(title: str, preview_text: str, content_sections: str) -> str:
    """Base MJML wrapper shared by all appointment emails"""
    return f"""
<mjml>
  <mj-head>
    <mj-title>{title}</mj-title>
    <mj-preview>{preview_text}</mj-preview>
    <mj-attributes>
      <mj-all font-family="Inter, -apple-system, Segoe UI, Roboto, sans-serif" />
      <mj-text color="{THEME['text_secondary']}" font-size="15px" line-height="1.6" />
    </mj-attributes>
  </mj-head>
  <mj-body background-color="{THEME['background']}">
    <mj-section background-color="{THEME['primary']}" padding="32px">
      <mj-column>
        <mj-text align="center" color="#FFFFFF" font-size="28px" font-weight="700">MedlyGo</mj-text>
      </mj-column>
    </mj-section>
    <mj-section background-color="{THEME['card_bg']}" padding="32px">
      <mj-column>
        {content_sections}
      </mj-column>
    </mj-section>
    <mj-section padding="20px 0">
      <mj-column>
        <mj-text align="center" font-size="12px" color="#94a3b8">
          You're receiving this because you booked an appointment on MedlyGo.
        </mj-text>
      </mj-column>
    </mj-section>
  </mj-body>
</mjml>
"""


def _appointment_card(p: dict, include_reference: bool = True) -> str:
    rows = [
        f"<strong>Hospital:</strong> {p['hospital']}",
        f"<strong>Address:</strong> {p.get('hospital_address') or ''}",
        f"<strong>Department:</strong> {p['department']}",
        f"<strong>Date:</strong> {p['date']}",
        f"<strong>Time:</strong> {p['time']}",
    ]
    if include_reference:
        rows.append(f"<strong>Reference:</strong> {p['reference_number']}")
    body = "<br/>".join(rows)
    return f"""
        <mj-text padding="16px" container-background-color="#F8FAFC" border="1px solid {THEME['border']}">
          {body}
        </mj-text>
    """


def booking_confirmation_email(p: dict) -> tuple[str, str]:
    content = f"""
        <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}">Booking received</mj-text>
        <mj-text>Hi {p['patient_name']}, your appointment request has been sent to the hospital.
          We will let you know as soon as it is reviewed.</mj-text>
        {_appointment_card(p)}
        <mj-button href="{FRONTEND_URL}/dashboard/appointments" background-color="{THEME['primary']}">
          View my appointments
        </mj-button>
    """
    subject = f"Appointment request received - {p['reference_number']}"
    return subject, get_base_template(subject, "Your booking has been received", content)


def reminder_24h_email(p: dict) -> tuple[str, str]:
    preparation: Optional[str] = p.get("preparation_instructions")
    preparation_section = (
        f'<mj-text><strong>Preparation:</strong> {preparation}</mj-text>' if preparation else ""
    )
    content = f"""
        <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}">Your appointment is tomorrow</mj-text>
        <mj-text>Hi {p['patient_name']}, this is a reminder of your appointment in 24 hours.</mj-text>
        {_appointment_card(p)}
        {preparation_section}
        <mj-text>Please arrive 15 minutes early and bring your Ghana Card.</mj-text>
    """
    subject = f"Reminder: appointment tomorrow at {p['time']}"
    return subject, get_base_template(subject, "Your appointment is tomorrow", content)


def cancellation_email(p: dict) -> tuple[str, str]:
    content = f"""
        <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}">Appointment cancelled</mj-text>
        <mj-text>Hi {p['patient_name']}, the following appointment has been cancelled.</mj-text>
        {_appointment_card(p, include_reference=False)}
        <mj-button href="{FRONTEND_URL}/dashboard/booking" background-color="{THEME['primary']}">
          Book a new appointment
        </mj-button>
    """
    subject = "Your appointment has been cancelled"
    return subject, get_base_template(subject, "Appointment cancelled", content)


EMAIL_TEMPLATES = {
    "booking_confirmation": booking_confirmation_email,
    "reminder_24h": reminder_24h_email,
    "cancellation": cancellation_email,
}
