#!/usr/bin/env python3
"""
Database migration script
Adds going_count and version columns to community_events and backfills
going_count from the attendee records
"""

import logging
import sqlite3
import sys
from pathlib import Path

logger = logging.getLogger(__name__)

EVENT_COLUMNS = {
    "going_count": "INTEGER NOT NULL DEFAULT 0",
    "version": "INTEGER NOT NULL DEFAULT 0",
}


def migrate_database(db_path: str = "notemore.db") -> bool:
    """Apply database migrations"""
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    try:
        # Check if columns already exist
        cursor.execute("PRAGMA table_info(community_events)")
        columns = [row[1] for row in cursor.fetchall()]

        migrations_applied = []

        for name, definition in EVENT_COLUMNS.items():
            if name not in columns:
                logger.info(f"Adding {name} column to community_events...")
                cursor.execute(
                    f"ALTER TABLE community_events ADD COLUMN {name} {definition}"
                )
                migrations_applied.append(name)

        # Recount 'going' attendees; repairs counters written by older code
        cursor.execute(
            """
            UPDATE community_events SET going_count = (
                SELECT COUNT(*) FROM event_attendees
                WHERE event_attendees.event_id = community_events.id
                AND event_attendees.status = 'going'
            )
            """
        )
        conn.commit()

        if migrations_applied:
            logger.info(
                f"✅ Migration complete! Added columns: {', '.join(migrations_applied)}"
            )
        else:
            logger.info("✅ Schema already up to date, going_count recounted")

        cursor.execute(
            "SELECT id, going_count, max_attendees FROM community_events "
            "WHERE max_attendees IS NOT NULL AND going_count > max_attendees"
        )
        for event_id, going, maximum in cursor.fetchall():
            logger.warning(
                f"Event {event_id} is over capacity: {going} going, max {maximum}"
            )

        return True

    except sqlite3.Error as e:
        logger.error(f"❌ Migration failed: {e}")
        conn.rollback()
        return False
    finally:
        conn.close()


if __name__ == "__main__":
    # Setup basic logging for script execution
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    db_file = sys.argv[1] if len(sys.argv) > 1 else "notemore.db"

    if not Path(db_file).exists():
        logger.error(f"❌ Database file not found: {db_file}")
        sys.exit(1)

    success = migrate_database(db_file)
    sys.exit(0 if success else 1)
