# Global Constants
from datetime import timedelta


class TaskStatus:
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class NotificationTypes:
    REMINDER = "reminder"
    TASK_DUE = "task_due"
    TASK_OVERDUE = "task_overdue"
    SHARED_LIST = "shared_list"
    LIST_SHARED = "list_shared"
    COMMENT = "comment"
    MENTION = "mention"
    MESSAGE = "message"
    SYSTEM = "system"


class ScanKinds:
    REMINDERS = "reminders"
    DUE_TODAY = "due-today"
    OVERDUE = "overdue"
    ALL = "all"


# --- Notification windows ---
REMINDER_LOOKAHEAD = timedelta(seconds=60)
OVERDUE_LOOKBACK = timedelta(hours=24)

# --- Scheduler timings ---
REMINDER_SCAN_INTERVAL = timedelta(seconds=60)
DUE_TODAY_SCAN_HOUR = 8
DUE_TODAY_SCAN_MINUTE = 0
OVERDUE_SCAN_INTERVAL = timedelta(hours=6)

# --- Retention ---
READ_NOTIFICATION_TTL_SECONDS = 30 * 24 * 60 * 60 # 30 days
