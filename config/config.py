"""Settings shared by every environment module.

Each environment module starts with `from .config import *` and overrides
what differs.
"""
import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "poap_attendance"),
}

# require_mark: students must mark before a lecturer validates.
# lecturer_direct: a lecturer may validate without a prior mark.
VALIDATION_POLICY = os.getenv("VALIDATION_POLICY", "require_mark")

# Empty URL disables badge issuance; validations then report badgeStatus=pending.
BADGE_SERVICE_URL = os.getenv("BADGE_SERVICE_URL", "")
BADGE_SERVICE_TOKEN = os.getenv("BADGE_SERVICE_TOKEN", "")
BADGE_TIMEOUT_SECONDS = float(os.getenv("BADGE_TIMEOUT_SECONDS", "10"))

IDENTITY_ORACLE_URL = os.getenv("IDENTITY_ORACLE_URL", "")
ORACLE_TIMEOUT_SECONDS = float(os.getenv("ORACLE_TIMEOUT_SECONDS", "5"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

DEBUG = False
TESTING = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
