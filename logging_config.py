"""
Logging for the Todu backend.

Every record carries the context of the work that produced it: the HTTP
request (``request_id``, ``user_id``) or the scheduler job (``job``).
Production writes JSON lines; development gets a short colored line.
"""

import logging
import logging.handlers
import json
import os
from datetime import datetime, timezone
from contextvars import ContextVar

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")
user_id_var: ContextVar[str] = ContextVar("user_id", default="-")
job_var: ContextVar[str] = ContextVar("job", default="-")

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5
QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "uvicorn.error": logging.INFO,
    "motor": logging.WARNING,
    "pymongo": logging.WARNING,
    "httpx": logging.WARNING,
}


def current_context() -> dict:
    return {
        "request_id": request_id_var.get(),
        "user_id": user_id_var.get(),
        "job": job_var.get(),
    }


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            **current_context(),
            "message": record.getMessage(),
        }
        data = getattr(record, "data", None)
        if data:
            entry["data"] = data
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class DevFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        context = current_context()
        if context["job"] != "-":
            where = f"[job={context['job']}]"
        else:
            where = f"[req={context['request_id']} user={context['user_id']}]"

        color = self.COLORS.get(record.levelname, self.RESET)
        line = f"{color}{record.levelname:<7}{self.RESET} {record.name} {where} {record.getMessage()}"

        data = getattr(record, "data", None)
        if data:
            line += f"  | data={data}"
        if record.exc_info and record.exc_info[0] is not None:
            line += f"\n{self.formatException(record.exc_info)}"
        return line


def setup_logging():
    """Configure the root logger: console (JSON in production) plus a rotating JSON file."""
    env = os.getenv("ENV", "development").lower()
    log_level = os.getenv("LOG_LEVEL", "DEBUG" if env == "development" else "INFO").upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(JSONFormatter() if env == "production" else DevFormatter())
    root_logger.addHandler(console_handler)

    log_dir = os.getenv("LOG_DIR", os.path.join(os.path.dirname(__file__), "logs"))
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "app.log")

    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(JSONFormatter())
    root_logger.addHandler(file_handler)

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    get_logger("logging").info(f"Logging initialized | env={env} level={log_level} file={log_file}")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"todu.{name}")
