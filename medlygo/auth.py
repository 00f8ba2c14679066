import base64
import json
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Optional

import httpx
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.x509 import load_pem_x509_certificate
from fastapi import Depends, Header, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import CRON_SECRET, FIREBASE_PROJECT_ID
from .database import get_db
from .errors import PatientProfileMissing, Unauthenticated, Unauthorized
from .models import Hospital, Patient, Provider, User, UserRole

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

GOOGLE_CERTS_URL = (
    "https://www.googleapis.com/robot/v1/metadata/x509/securetoken@system.gserviceaccount.com"
)

# Cache for Google's public keys
_cached_keys: Optional[dict] = None


@dataclass(frozen=True)
class Actor:
    """Identity resolved once at the API boundary and passed into every operation"""

    user_id: int
    role: str
    email: Optional[str] = None
    patient_id: Optional[int] = None
    provider_id: Optional[int] = None
    hospital_id: Optional[int] = None


async def get_google_public_keys(force_refresh: bool = False) -> Optional[dict]:
    """Fetch Google's public keys for Firebase token verification"""
    global _cached_keys
    if _cached_keys and not force_refresh:
        return _cached_keys

    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(GOOGLE_CERTS_URL, timeout=10.0)
            if response.status_code == 200:
                _cached_keys = response.json()
                logger.info(f"✅ Fetched {len(_cached_keys)} Google public keys")
                return _cached_keys
            logger.error(f"❌ Failed to fetch Google public keys: HTTP {response.status_code}")
    except httpx.HTTPError as e:
        logger.error(f"❌ Error fetching Google public keys: {e}")
    return None


def _b64decode(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


async def verify_firebase_token(token: str) -> dict:
    """
    Verify a Firebase ID token: RS256 signature against Google's certificates,
    then audience, issuer, expiry and issued-at claims.
    """
    if not FIREBASE_PROJECT_ID:
        logger.error("❌ FIREBASE_PROJECT_ID not configured")
        raise HTTPException(status_code=500, detail="Authentication provider not configured")

    parts = token.split(".")
    if len(parts) != 3:
        raise HTTPException(status_code=401, detail="Invalid token format")
    header_b64, payload_b64, signature_b64 = parts

    try:
        header = json.loads(_b64decode(header_b64))
        payload = json.loads(_b64decode(payload_b64))
        signature = _b64decode(signature_b64)
    except (ValueError, json.JSONDecodeError) as e:
        logger.error(f"❌ Failed to decode token: {e}")
        raise HTTPException(status_code=401, detail="Invalid token") from e

    kid = header.get("kid")
    if header.get("alg") != "RS256" or not kid:
        raise HTTPException(status_code=401, detail="Invalid token header")

    public_keys = await get_google_public_keys()
    if not public_keys or kid not in public_keys:
        logger.warning(f"⚠️ Key ID {kid} not found in public keys, refreshing")
        public_keys = await get_google_public_keys(force_refresh=True)
        if not public_keys or kid not in public_keys:
            raise HTTPException(status_code=401, detail="Unable to verify token signature")

    cert = load_pem_x509_certificate(public_keys[kid].encode())
    try:
        cert.public_key().verify(
            signature,
            f"{header_b64}.{payload_b64}".encode(),
            padding.PKCS1v15(),
            hashes.SHA256(),
        )
    except Exception as e:
        logger.error(f"❌ Token signature verification failed: {e}")
        raise HTTPException(status_code=401, detail="Invalid token signature") from e

    if payload.get("aud") != FIREBASE_PROJECT_ID:
        raise HTTPException(status_code=401, detail="Invalid token audience")
    if payload.get("iss") != f"https://securetoken.google.com/{FIREBASE_PROJECT_ID}":
        raise HTTPException(status_code=401, detail="Invalid token issuer")

    now = time.time()
    if payload.get("exp", 0) < now:
        raise HTTPException(
            status_code=401,
            detail="Token has expired. Please refresh your session.",
            headers={"X-Token-Expired": "true"},
        )
    if payload.get("iat", 0) > now + 60:  # Allow 60 seconds clock skew
        raise HTTPException(status_code=401, detail="Invalid token")

    return payload


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current user from a Firebase bearer token, creating the local row on first sight"""
    if not credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")

    claims = await verify_firebase_token(credentials.credentials)
    firebase_uid = claims.get("sub") or claims.get("user_id")
    if not firebase_uid:
        raise HTTPException(status_code=401, detail="Invalid token claims")

    user = db.query(User).filter(User.firebase_uid == firebase_uid).first()
    if not user:
        logger.info(f"🆕 Creating new user: {claims.get('email')}")
        user = User(
            firebase_uid=firebase_uid,
            email=claims.get("email"),
            phone=claims.get("phone_number"),
            full_name=claims.get("name", ""),
            role=UserRole.PATIENT.value,
        )
        db.add(user)
        db.commit()
        db.refresh(user)

    return user


def resolve_patient_actor(db: Session, user: Optional[User]) -> Actor:
    """Map an authenticated user to their patient profile"""
    if user is None:
        raise Unauthenticated()

    patient = db.query(Patient).filter(Patient.user_id == user.id).first()
    if not patient:
        raise PatientProfileMissing()

    return Actor(user_id=user.id, role=UserRole.PATIENT.value, email=user.email, patient_id=patient.id)


def resolve_provider_actor(db: Session, user: Optional[User]) -> Actor:
    """
    Map an authenticated user to the hospital they act for.

    An active provider row wins; otherwise a hospital whose contact email is the
    user's email is treated as the hospital's own account.
    """
    if user is None:
        raise Unauthenticated()

    provider = (
        db.query(Provider).filter(Provider.user_id == user.id, Provider.is_active.is_(True)).first()
    )
    if provider:
        return Actor(
            user_id=user.id,
            role=UserRole.PROVIDER.value,
            email=user.email,
            provider_id=provider.id,
            hospital_id=provider.hospital_id,
        )

    if user.email:
        hospital = db.query(Hospital).filter(Hospital.email == user.email).first()
        if hospital:
            return Actor(
                user_id=user.id,
                role=UserRole.PROVIDER.value,
                email=user.email,
                hospital_id=hospital.id,
            )

    raise Unauthorized("Provider not found")


async def get_patient_actor(
    user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> Actor:
    try:
        return resolve_patient_actor(db, user)
    except PatientProfileMissing as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e


async def get_provider_actor(
    user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> Actor:
    try:
        return resolve_provider_actor(db, user)
    except Unauthorized as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.ADMIN.value:
        logger.warning(f"⚠️ User {user.id} attempted admin access")
        raise HTTPException(status_code=403, detail="Unauthorized - Admin access required")
    return user


def verify_cron_secret(authorization: Optional[str] = Header(default=None)) -> None:
    """Scheduler trigger must present 'Bearer <CRON_SECRET>'"""
    expected = f"Bearer {CRON_SECRET}" if CRON_SECRET else None
    if not expected or not authorization or not secrets.compare_digest(authorization, expected):
        logger.warning("⚠️ Rejected cron request with missing or invalid credentials")
        raise HTTPException(status_code=401, detail="Unauthorized")
