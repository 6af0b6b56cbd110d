"""
Tip Raffle Configuration
Deployment parameters read from the environment
"""

import os

# Database (Railway-style postgres:// URLs need the postgresql:// dialect name)
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///raffle.db")
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

# Realtime feed (disabled when unset)
REDIS_URL = os.getenv("REDIS_URL", "")
SUBMISSIONS_CHANNEL = "raffle:submissions"

# Winner email relay
RESEND_API_KEY = os.getenv("RESEND_API_KEY", "")
RESEND_API_URL = "https://api.resend.com/emails"
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "noreply@example.com")
NOTIFICATION_WORKERS = int(os.getenv("NOTIFICATION_WORKERS", "4"))

# Admin API
ADMIN_API_KEY = os.getenv("ADMIN_API_KEY", "")

# Remote call timeout (seconds)
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))

# Configuration persistence debounce (seconds)
CONFIG_FLUSH_DEBOUNCE_SECONDS = float(os.getenv("CONFIG_FLUSH_DEBOUNCE_SECONDS", "0.5"))

# Eligibility windows
WEEK_STARTS_ON = int(os.getenv("WEEK_STARTS_ON", "6"))  # datetime.weekday(): Monday=0 ... Sunday=6
ROLLING_WINDOW_DAYS = 30

# Export formatting
EXPORT_DATETIME_FORMAT = "%d/%m/%Y %H:%M:%S"
EMAIL_DATE_FORMAT = "%d/%m/%Y"

# HTTP server
PORT = int(os.getenv("PORT", "8000"))
