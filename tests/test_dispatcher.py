from datetime import datetime, timezone

from automations.dispatcher import render_message
from models.task import TaskModel


async def test_due_notification_content(scanner, insert_task):
    task = await insert_task(title="Pay rent", priority="high", due_date=datetime(2024, 1, 15, tzinfo=timezone.utc))

    notification = await scanner.dispatcher.dispatch(task.id, "task_due")

    assert notification.type == "task_due"
    assert notification.title == "Task Due Today"
    assert notification.message == '"Pay rent" is due today'
    assert notification.action_url == f"/dashboard?task={task.id}"
    assert notification.user_id == task.user_id
    assert notification.task_id == task.id
    assert notification.metadata["priority"] == "high"
    assert notification.metadata["task_title"] == "Pay rent"
    assert notification.metadata["due_date"].startswith("2024-01-15T00:00:00")


async def test_overdue_and_reminder_content(scanner, insert_task):
    task = await insert_task(title="Pay rent")

    overdue = await scanner.dispatcher.dispatch(task.id, "task_overdue")
    reminder = await scanner.dispatcher.dispatch(task.id, "reminder")

    assert (overdue.title, overdue.message) == ("Task Overdue", '"Pay rent" is overdue')
    assert (reminder.title, reminder.message) == ("Task Reminder", "Reminder: Pay rent")


async def test_created_at_comes_from_clock(scanner, insert_task, clock):
    task = await insert_task()
    notification = await scanner.dispatcher.dispatch(task.id, "task_due")
    assert notification.created_at == clock.now()


async def test_missing_task_is_a_noop(scanner, notifications_in_db):
    assert await scanner.dispatcher.dispatch("does-not-exist", "task_due") is None
    assert await notifications_in_db() == []


async def test_task_completed_since_scan_is_a_noop(scanner, insert_task, notifications_in_db):
    task = await insert_task(status="done")
    assert await scanner.dispatcher.dispatch(task.id, "task_overdue") is None
    assert await notifications_in_db() == []


async def test_reminder_sends_email_to_owner(scanner, insert_task, test_user, email_sender):
    task = await insert_task(title="Call mom")

    await scanner.dispatcher.dispatch(task.id, "reminder")

    email_sender.assert_called_once()
    to_email, name, sent_task = email_sender.call_args.args
    assert to_email == test_user["email"]
    assert name == test_user["name"]
    assert sent_task.id == task.id
    assert email_sender.call_args.kwargs["tz"] is scanner.clock.tz


async def test_only_reminders_send_email(scanner, insert_task, test_user, email_sender):
    task = await insert_task()
    await scanner.dispatcher.dispatch(task.id, "task_due")
    await scanner.dispatcher.dispatch(task.id, "task_overdue")
    email_sender.assert_not_called()


async def test_email_failure_is_swallowed(scanner, insert_task, test_user, email_sender, notifications_in_db):
    email_sender.side_effect = RuntimeError("SMTP down")
    task = await insert_task()

    notification = await scanner.dispatcher.dispatch(task.id, "reminder")

    assert notification is not None
    assert len(await notifications_in_db(type="reminder")) == 1


async def test_reminder_without_owner_skips_email(scanner, insert_task, email_sender):
    task = await insert_task()
    assert await scanner.dispatcher.dispatch(task.id, "reminder") is not None
    email_sender.assert_not_called()


def test_long_titles_are_truncated_to_fit_message():
    task = TaskModel(title="x" * 500, user_id="u1")
    for type in ("reminder", "task_due", "task_overdue"):
        _, message = render_message(type, task)
        assert len(message) <= 500
        assert "..." in message
