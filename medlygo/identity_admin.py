"""
Firebase Admin access for server-side account management
(hospital login accounts during onboarding, patient logins on account deletion)
"""

import logging
import secrets
import string

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials

from .config import FIREBASE_PROJECT_ID

logger = logging.getLogger(__name__)

PASSWORD_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghjkmnpqrstuvwxyz23456789"


def _ensure_app() -> None:
    try:
        firebase_admin.get_app()
    except ValueError:
        try:
            cred = credentials.ApplicationDefault()
            firebase_admin.initialize_app(cred, {"projectId": FIREBASE_PROJECT_ID})
            logger.info("Firebase Admin initialized with default credentials")
        except Exception:
            # Initialize without credentials (limited functionality)
            firebase_admin.initialize_app(options={"projectId": FIREBASE_PROJECT_ID})
            logger.info("Firebase Admin initialized with project ID only")


def generate_temporary_password(length: int = 12) -> str:
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


class FirebaseAccountAdmin:
    """Firebase account operations used by hospital onboarding and account deletion"""

    def create_user(self, email: str, password: str, display_name: str) -> str:
        _ensure_app()
        record = firebase_auth.create_user(
            email=email,
            password=password,
            display_name=display_name,
            email_verified=True,  # Admin-created accounts skip email confirmation
        )
        logger.info(f"✅ Firebase account created for {email}")
        return record.uid

    def delete_user(self, uid: str) -> None:
        _ensure_app()
        firebase_auth.delete_user(uid)
        logger.info(f"🗑️ Firebase account {uid} deleted")
