from .config import *  # noqa: F401,F403

SECRET_KEY = "test-secret"

DEBUG = False
TESTING = True

AUTO_INIT_DB = False
AUTO_SEED_ADMIN = False
MAIL_ENABLED = False
NOTIFY_URL = ""
