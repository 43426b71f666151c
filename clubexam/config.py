"""
Runtime configuration.
Everything is read from the environment (a .env file is loaded by main.py
before this module is imported).
"""

import os

# ─── Database ─────────────────────────────────────────────────────────────────

POSTGRES_USER = os.getenv("POSTGRES_USER", "club_user")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD", "club_pass")
POSTGRES_HOST = os.getenv("POSTGRES_HOST", "localhost")
POSTGRES_PORT = os.getenv("POSTGRES_PORT", "5432")
POSTGRES_DB = os.getenv("POSTGRES_DB", "club_exams")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DB}",
)

# ─── Redis (progress checkpoints) ─────────────────────────────────────────────

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

VIDEO_PROGRESS_TTL_HOURS = int(os.getenv("VIDEO_PROGRESS_TTL_HOURS", "24"))
QUIZ_DRAFT_GRACE_MINUTES = int(os.getenv("QUIZ_DRAFT_GRACE_MINUTES", "30"))

# ─── Auth ─────────────────────────────────────────────────────────────────────

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "clubexam-secret-key-change-in-production")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "120"))

DEFAULT_ADMIN_EMAIL = os.getenv("DEFAULT_ADMIN_EMAIL", "admin@club.org")
DEFAULT_ADMIN_PASSWORD = os.getenv("DEFAULT_ADMIN_PASSWORD", "admin")

# ─── Exam rules ───────────────────────────────────────────────────────────────

VIDEO_COMPLETION_THRESHOLD = 80.0  # percent of the video that unlocks submission
CLOCK_SKEW_SECONDS = int(os.getenv("CLOCK_SKEW_SECONDS", "60"))
WATCH_TIME_GRACE_SECONDS = int(os.getenv("WATCH_TIME_GRACE_SECONDS", "10"))

# ─── HTTP ─────────────────────────────────────────────────────────────────────

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
