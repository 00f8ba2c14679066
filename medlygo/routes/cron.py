"""
Scheduler-triggered endpoints
The hosting platform calls these with "Authorization: Bearer <CRON_SECRET>"
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import config
from ..auth import verify_cron_secret
from ..database import get_db
from ..services.reminders import run_reminder_sweep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cron", tags=["Cron"])


@router.get("/reminders", dependencies=[Depends(verify_cron_secret)])
async def send_reminders(db: Session = Depends(get_db)):
    """Send due 48h/24h/2h appointment reminders"""
    logger.info("⏰ Reminder sweep triggered")
    try:
        summary = await run_reminder_sweep(db, budget_seconds=config.REMINDER_SWEEP_BUDGET_SECONDS)
    except Exception as e:
        logger.error(f"❌ Reminder sweep failed: {e}")
        raise HTTPException(
            status_code=500, detail={"error": "Failed to process reminders", "details": str(e)}
        ) from e
    return {"success": True, **summary}
