import os
from datetime import datetime


def _flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or "change-me"

    # Database
    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "hr_management")

    # Startup helpers
    AUTO_INIT_DB = _flag("AUTO_INIT_DB")
    AUTO_SEED_ADMIN = _flag("AUTO_SEED_ADMIN")
    ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "admin@example.com")
    ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "")

    # Flask-Mail
    MAIL_SERVER = os.environ.get("MAIL_SERVER", "smtp.gmail.com")
    MAIL_PORT = int(os.environ.get("MAIL_PORT", "587"))
    MAIL_USE_TLS = _flag("MAIL_USE_TLS", "1")
    MAIL_USE_SSL = _flag("MAIL_USE_SSL")
    MAIL_USERNAME = os.environ.get("MAIL_USERNAME")
    MAIL_PASSWORD = os.environ.get("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.environ.get("MAIL_DEFAULT_SENDER") or MAIL_USERNAME
    MAIL_ENABLED = bool(MAIL_USERNAME) and _flag("MAIL_ENABLED", "1")

    # Real-time notification service (POST {NOTIFY_URL}/notify)
    NOTIFY_URL = os.environ.get("NOTIFY_URL", "")

    # Google Calendar
    GOOGLE_CLIENT_ID = os.environ.get("GOOGLE_CLIENT_ID", "")
    GOOGLE_CLIENT_SECRET = os.environ.get("GOOGLE_CLIENT_SECRET", "")

    # Business rules
    LATE_CUTOFF = datetime.strptime(os.environ.get("LATE_CUTOFF", "09:00"), "%H:%M").time()
    DEFAULT_LEAVE_BALANCE = int(os.environ.get("DEFAULT_LEAVE_BALANCE", "25"))
    APP_TIMEZONE = os.environ.get("APP_TIMEZONE", "Europe/Paris")


SECRET_KEY = Config.SECRET_KEY
DB_CONFIG = {
    "host": Config.DB_HOST,
    "port": Config.DB_PORT,
    "user": Config.DB_USER,
    "password": Config.DB_PASSWORD,
    "database": Config.DB_NAME,
}

DEBUG = _flag("DEBUG")

AUTO_INIT_DB = Config.AUTO_INIT_DB
AUTO_SEED_ADMIN = Config.AUTO_SEED_ADMIN
ADMIN_EMAIL = Config.ADMIN_EMAIL
ADMIN_PASSWORD = Config.ADMIN_PASSWORD

MAIL_SERVER = Config.MAIL_SERVER
MAIL_PORT = Config.MAIL_PORT
MAIL_USE_TLS = Config.MAIL_USE_TLS
MAIL_USE_SSL = Config.MAIL_USE_SSL
MAIL_USERNAME = Config.MAIL_USERNAME
MAIL_PASSWORD = Config.MAIL_PASSWORD
MAIL_DEFAULT_SENDER = Config.MAIL_DEFAULT_SENDER
MAIL_ENABLED = Config.MAIL_ENABLED

NOTIFY_URL = Config.NOTIFY_URL
GOOGLE_CLIENT_ID = Config.GOOGLE_CLIENT_ID
GOOGLE_CLIENT_SECRET = Config.GOOGLE_CLIENT_SECRET

LATE_CUTOFF = Config.LATE_CUTOFF
DEFAULT_LEAVE_BALANCE = Config.DEFAULT_LEAVE_BALANCE
APP_TIMEZONE = Config.APP_TIMEZONE
