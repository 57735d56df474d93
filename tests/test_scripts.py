import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from constants import READ_NOTIFICATION_TTL_SECONDS
from scripts.setup_indexes import create_indexes
from scripts.run_notification_scan import run_scan

pytestmark = pytest.mark.asyncio


async def test_create_indexes_adds_read_notification_ttl():
    db = {name: MagicMock(create_index=AsyncMock()) for name in ("tasks", "notifications", "users")}

    await create_indexes(db)

    ttl_calls = [
        call for call in db["notifications"].create_index.await_args_list
        if "expireAfterSeconds" in call.kwargs
    ]
    assert len(ttl_calls) == 1
    assert ttl_calls[0].kwargs["expireAfterSeconds"] == READ_NOTIFICATION_TTL_SECONDS
    assert ttl_calls[0].kwargs["partialFilterExpression"] == {"read": True}

    task_indexes = [call.args[0] for call in db["tasks"].create_index.await_args_list]
    assert [("reminder_date", 1)] in task_indexes


async def test_run_scan_reports_all_three_scans(scanner, insert_task, capsys):
    await insert_task(due_date=datetime(2024, 1, 15, 6, tzinfo=timezone.utc))

    results = await run_scan(scanner)

    assert results["due-today"].processed == 1
    assert results["overdue"].processed == 1
    assert results["reminders"].processed == 0
    out = capsys.readouterr().out
    assert "Tasks due today: 1" in out
    assert "Total notifications created: 2" in out
