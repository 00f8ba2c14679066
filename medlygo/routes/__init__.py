from .cron import router as cron_router

__all__ = ["cron_router"]
