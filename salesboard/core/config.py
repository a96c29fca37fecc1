import os
from dotenv import load_dotenv

load_dotenv(override=True)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./salesboard.db")


REDIS_DSN = os.getenv("REDIS_DSN", "redis://localhost:6379/0")
DIRECTORY_CACHE_TTL = int(os.getenv("DIRECTORY_CACHE_TTL", "3600"))


# Часовой пояс сети, по нему определяется "сегодня" для прогноза
TIMEZONE = os.getenv("TIMEZONE", "Asia/Riyadh")

PRESERVE_MANUAL_OVERRIDES = os.getenv("PRESERVE_MANUAL_OVERRIDES", "false").lower() in (
    "1",
    "true",
    "yes",
)

# Доли смен в дневном плане: "morning:45,evening:45,night:10"
SHIFT_WEIGHTS = os.getenv("SHIFT_WEIGHTS", "morning:45,evening:45,night:10")

ALERT_ON_TRACK_PERCENT = float(os.getenv("ALERT_ON_TRACK_PERCENT", "90"))
ALERT_WARNING_PERCENT = float(os.getenv("ALERT_WARNING_PERCENT", "70"))

SNAPSHOT_MAX_AGE_SECONDS = int(os.getenv("SNAPSHOT_MAX_AGE_SECONDS", "900"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
