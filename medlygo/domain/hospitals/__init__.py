"""Admin hospital onboarding domain"""

from .router import router

__all__ = ["router"]
