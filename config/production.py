import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "hr_onboarding"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hr_onboarding"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "/var/lib/hr_onboarding/uploads")
UPLOAD_BASE_URL = os.getenv("UPLOAD_BASE_URL", "/uploads")

AUDIT_RETRY_ATTEMPTS = int(os.getenv("AUDIT_RETRY_ATTEMPTS", "5"))
AUDIT_RETRY_BACKOFF_SECONDS = float(os.getenv("AUDIT_RETRY_BACKOFF_SECONDS", "0.5"))
