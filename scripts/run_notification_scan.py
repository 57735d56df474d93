"""
Run the notification scans once against the configured database.

Prints how many tasks sit in each window, then runs the reminder, due-today
and overdue scans and reports what they created.
Run with: python scripts/run_notification_scan.py
"""
import sys
import os
import asyncio

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from logging_config import setup_logging
from automations.classifier import reminder_window, due_today_window
from automations.scanner import DueItemScanner


async def run_scan(scanner: DueItemScanner) -> dict:
    now = scanner.clock.now()
    print(f"Scan time: {now.isoformat()}\n")

    reminders = await scanner.tasks.find_with_reminder_between(*reminder_window(now))
    due_today = await scanner.tasks.find_due_between(*due_today_window(now))
    overdue = await scanner.tasks.find_due_before(now)

    print(f"📅 Tasks with reminders due: {len(reminders)}")
    print(f"📌 Tasks due today: {len(due_today)}")
    print(f"⚠️  Overdue tasks: {len(overdue)}")
    for task in overdue[:3]:
        print(f"  - \"{task.title}\" (Due: {task.due_date})")

    print("\n🔄 Running notification scans...\n")
    results = {
        "reminders": await scanner.scan_reminders(),
        "due-today": await scanner.scan_due_today(),
        "overdue": await scanner.scan_overdue(),
    }
    for name, result in results.items():
        print(f"   ✓ {name}: processed={result.processed} errors={result.errors}")

    total = sum(r.processed for r in results.values())
    print(f"\n✅ Total notifications created: {total}")
    return results


async def main():
    from database import db, client
    try:
        await run_scan(DueItemScanner(db))
    finally:
        client.reset()


if __name__ == "__main__":
    setup_logging()
    asyncio.run(main())
