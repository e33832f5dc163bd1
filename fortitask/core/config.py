import os
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent

# DEV defaults: override through the environment in production.
SECRET_KEY = os.getenv("FORTITASK_SECRET_KEY", "change-me-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE = timedelta(
    minutes=int(os.getenv("FORTITASK_TOKEN_EXPIRE_MINUTES", "720"))
)

DATABASE_URL = os.getenv("FORTITASK_DATABASE_URL", f"sqlite:///{BASE_DIR}/fortitask.db")

LOG_LEVEL = os.getenv("FORTITASK_LOG_LEVEL", "INFO")

# Timing analysis
# a late upload arriving more than this after the deadline while claiming a
# pre-deadline edit is flagged as a rolled-back clock
CLOCKBACK_THRESHOLD = timedelta(
    hours=float(os.getenv("FORTITASK_CLOCKBACK_THRESHOLD_HOURS", "24"))
)
