"""Booking reference numbers: MG-YYYYMMDD-XXXX"""

import secrets
import string
from datetime import datetime
from typing import Callable, Optional

from ...errors import StoreError

REFERENCE_ALPHABET = string.ascii_uppercase + string.digits
MAX_REFERENCE_ATTEMPTS = 5


def generate_reference_number(now: Optional[datetime] = None) -> str:
    now = now or datetime.utcnow()
    suffix = "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(4))
    return f"MG-{now.strftime('%Y%m%d')}-{suffix}"


def generate_unique_reference_number(
    exists: Callable[[str], bool],
    now: Optional[datetime] = None,
    generator: Callable[[Optional[datetime]], str] = generate_reference_number,
) -> str:
    """
    Generate a reference number not yet present in the store.

    Raises:
        StoreError: If every attempt collided with an existing booking
    """
    for _ in range(MAX_REFERENCE_ATTEMPTS):
        candidate = generator(now)
        if not exists(candidate):
            return candidate

    raise StoreError("Could not generate a unique reference number")
