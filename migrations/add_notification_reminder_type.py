"""
Add the structured reminder_type column to notifications and backfill it
from the reminder wording of previously sent SMS messages.
Safe to run more than once.
Run with: python -m migrations.add_notification_reminder_type
"""

import logging
import sys

from sqlalchemy import inspect, text

logger = logging.getLogger(__name__)

# Message wording each reminder type has used, current and legacy
REMINDER_MARKERS = {
    "reminder_48h": ("%in 2 days%", "%48 hours%"),
    "reminder_24h": ("%tomorrow%", "%24 hours%"),
    "reminder_2h": ("%in 2 hours%", "% 2 hours%"),
}


def add_reminder_type_column(conn) -> bool:
    columns = {c["name"] for c in inspect(conn).get_columns("notifications")}
    if "reminder_type" in columns:
        logger.info("✅ notifications.reminder_type already exists")
        return False

    conn.execute(text("ALTER TABLE notifications ADD COLUMN reminder_type VARCHAR(20)"))
    conn.execute(
        text("CREATE INDEX IF NOT EXISTS ix_notifications_reminder_type ON notifications (reminder_type)")
    )
    logger.info("✅ Added notifications.reminder_type")
    return True


def backfill_reminder_types(conn) -> dict:
    """Tag untyped reminder rows; earlier types in REMINDER_MARKERS win on overlap"""
    counts = {}
    for reminder_type, patterns in REMINDER_MARKERS.items():
        updated = 0
        for pattern in patterns:
            result = conn.execute(
                text(
                    "UPDATE notifications SET reminder_type = :reminder_type "
                    "WHERE reminder_type IS NULL AND message LIKE :pattern"
                ),
                {"reminder_type": reminder_type, "pattern": pattern},
            )
            updated += result.rowcount or 0
        counts[reminder_type] = updated
        logger.info(f"📋 {reminder_type}: {updated} row(s) backfilled")
    return counts


def run(engine) -> dict:
    with engine.begin() as conn:
        add_reminder_type_column(conn)
        return backfill_reminder_types(conn)


def main():
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    from medlygo.database import engine

    try:
        counts = run(engine)
        logger.info(f"✅ Migration completed: {counts}")
    except Exception as e:
        logger.error(f"❌ Migration failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
