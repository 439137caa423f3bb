# storefront/config.py
import os
from datetime import timedelta


def _flag(name: str, default: str = "1") -> bool:
    return os.getenv(name, default).strip().lower() not in ("0", "false", "no", "off", "")


# -----------------------------------------------------------------------------
# Database / seed data
# -----------------------------------------------------------------------------
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite://")
SEED_DATA = _flag("SEED_DATA")

# -----------------------------------------------------------------------------
# Auth
# -----------------------------------------------------------------------------
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
ALGO = "HS256"
ACCESS_EXPIRE_MIN = int(os.getenv("ACCESS_EXPIRE_MIN", str(60 * 24)))
SESSION_PRUNE_INTERVAL = timedelta(hours=24)

# -----------------------------------------------------------------------------
# Cart
# -----------------------------------------------------------------------------
TAX_RATE = 0.07
FREE_SHIPPING_THRESHOLD = 100.0
SHIPPING_FEE = 10.0

# -----------------------------------------------------------------------------
# Chatbot
# -----------------------------------------------------------------------------
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")
CHATBOT_MAX_TOKENS = 300
CHATBOT_TIMEOUT = int(os.getenv("CHATBOT_TIMEOUT", "25"))

# -----------------------------------------------------------------------------
# HTTP
# -----------------------------------------------------------------------------
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
DEBUG = _flag("DEBUG", "0")
