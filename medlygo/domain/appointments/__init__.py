"""Appointment lifecycle domain"""

from .router import provider_router, router

__all__ = ["router", "provider_router"]
