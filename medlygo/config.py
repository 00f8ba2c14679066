import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./medlygo.db")

# Firebase Configuration (auth BaaS)
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")

# Shared secret presented by the scheduler trigger as "Authorization: Bearer <secret>"
CRON_SECRET = os.getenv("CRON_SECRET")
if not CRON_SECRET:
    import warnings

    warnings.warn(
        "CRON_SECRET not set! The reminder cron endpoint will reject every request",
        RuntimeWarning,
        stacklevel=2,
    )

# Frontend base URL used in email links
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "MedlyGo <notifications@medlygo.com>")

# Hubtel SMS (primary, Ghana coverage)
HUBTEL_CLIENT_ID = os.getenv("HUBTEL_CLIENT_ID")
HUBTEL_CLIENT_SECRET = os.getenv("HUBTEL_CLIENT_SECRET")
HUBTEL_SENDER_ID = os.getenv("HUBTEL_SENDER_ID", "MEDLYGO")

# Twilio SMS (fallback)
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_PHONE_NUMBER = os.getenv("TWILIO_PHONE_NUMBER")

# Reminder sweep must finish inside the trigger's execution limit (60s on the cron host)
REMINDER_SWEEP_BUDGET_SECONDS = float(os.getenv("REMINDER_SWEEP_BUDGET_SECONDS", "50"))

# View cache TTL for appointment lists
APPOINTMENT_CACHE_TTL = int(os.getenv("APPOINTMENT_CACHE_TTL", "300"))
