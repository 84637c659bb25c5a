import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hr_onboarding_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "/tmp/hr_onboarding_uploads")
UPLOAD_BASE_URL = os.getenv("UPLOAD_BASE_URL", "http://testserver/uploads")

AUDIT_RETRY_ATTEMPTS = 1
AUDIT_RETRY_BACKOFF_SECONDS = 0.0
