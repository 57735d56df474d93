import os
from dotenv import load_dotenv

# Load .env file
load_dotenv()

class Config:
    # --- MongoDB Settings ---
    MONGO_URI = os.getenv("MONGO_URI")
    DB_NAME = os.getenv("DB_NAME", "todu") # Defaults to todu, can be overridden in .env

    # --- Environment ---
    ENV = os.getenv("ENV", "development") # "development", "testing" or "production"
    CLIENT_URL = os.getenv("CLIENT_URL", "http://localhost:5173")

    # --- Security Settings ---
    # In production, ALWAYS set this in .env. Never use the fallback.
    SECRET_KEY = os.getenv("SECRET_KEY")
    if ENV == "production" and not SECRET_KEY:
        raise ValueError("SECRET_KEY environment variable is mandatory in production!")
    elif not SECRET_KEY:
        SECRET_KEY = "dev_secret_key_change_in_prod"
    ALGORITHM = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24 * 7 # 7 Days

    # --- Email Settings (Resend) ---
    RESEND_API_KEY = os.getenv("RESEND_API_KEY")
    MAIL_FROM = os.getenv("MAIL_FROM", "notifications@todu.app")
    MAIL_FROM_NAME = os.getenv("MAIL_FROM_NAME", "Todu")

    # --- Notification Scheduler ---
    # Only the literal "false" disables the background jobs
    NOTIFICATIONS_SCHEDULER_ENABLED = os.getenv("NOTIFICATIONS_SCHEDULER_ENABLED", "true").lower() != "false"
    # IANA zone name used for calendar-day boundaries; empty means server local time
    SCHEDULER_TIMEZONE = os.getenv("SCHEDULER_TIMEZONE", "")

config = Config()
