import sys
import os
import asyncio
from pymongo import ASCENDING, DESCENDING

# Add parent directory to path to import database
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from constants import READ_NOTIFICATION_TTL_SECONDS
from logging_config import get_logger

logger = get_logger("setup_indexes")

async def create_indexes(db):
    print("🚀 Starting Index Creation...")

    # --- Tasks ---
    print("\n📦 Tasks Collection:")
    # For Due-Today / Overdue scans and per-user due views: find({due_date: range, status: {$ne: done}})
    await db["tasks"].create_index([("user_id", ASCENDING), ("due_date", ASCENDING)])
    await db["tasks"].create_index([("due_date", ASCENDING), ("status", ASCENDING)])
    print("✅ Created index: (user_id, due_date), (due_date, status)")

    # For Reminder scan: find({reminder_date: [now, now+60s]})
    await db["tasks"].create_index([("reminder_date", ASCENDING)])
    print("✅ Created index: (reminder_date)")

    # Fetch by id (dispatcher re-fetch)
    await db["tasks"].create_index([("id", ASCENDING)], unique=True)
    print("✅ Created index: (id UNIQUE)")

    # --- Notifications ---
    print("\n📦 Notifications Collection:")
    # For Unread Count and listing: find({user_id: X, read: False}).sort(created_at: -1)
    await db["notifications"].create_index([("user_id", ASCENDING), ("read", ASCENDING), ("created_at", DESCENDING)])
    print("✅ Created index: (user_id, read, created_at DESC)")

    # For Dedup lookups: find_one({user_id, task_id, type, created_at >= window start})
    await db["notifications"].create_index([
        ("user_id", ASCENDING), ("task_id", ASCENDING), ("type", ASCENDING), ("created_at", DESCENDING)
    ])
    print("✅ Created index: (user_id, task_id, type, created_at DESC)")

    # Read notifications expire after 30 days
    await db["notifications"].create_index(
        [("created_at", ASCENDING)],
        expireAfterSeconds=READ_NOTIFICATION_TTL_SECONDS,
        partialFilterExpression={"read": True},
        name="read_notifications_ttl",
    )
    print("✅ Created TTL index: created_at (read only, 30 days)")

    # --- Users ---
    print("\n📦 Users Collection:")
    await db["users"].create_index([("id", ASCENDING)], unique=True)
    await db["users"].create_index([("email", ASCENDING)], unique=True)
    print("✅ Created index: (id UNIQUE), (email UNIQUE)")

    logger.info("Indexes created")
    print("\n✨ All indexes created successfully!")

if __name__ == "__main__":
    from database import db
    asyncio.run(create_indexes(db))
