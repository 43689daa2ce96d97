import os
from pathlib import Path

from dotenv import load_dotenv

# .env lives next to pyproject.toml
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./cleanops.db")

# Calendar day boundaries, week starts and timeline rendering
BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "Europe/London")
WEEK_STARTS_ON = int(os.getenv("WEEK_STARTS_ON", "0"))  # 0 = Monday
TIMELINE_SLOT_HEIGHT_PX = int(os.getenv("TIMELINE_SLOT_HEIGHT_PX", "72"))
CALENDAR_POLL_SECONDS = float(os.getenv("CALENDAR_POLL_SECONDS", "15"))

DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "GBP")

# Frontend base URL for links in emails
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "CleanOps <noreply@cleanops.app>")

# Shown in customer-facing emails
COMPANY_NAME = os.getenv("COMPANY_NAME", "Your Cleaning Company")

# Comma-separated origins allowed by CORS
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
