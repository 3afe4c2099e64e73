import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./carwash.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))

# Frontend base URL for checkout redirects
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Stripe Checkout Configuration
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
STRIPE_API_BASE = os.getenv("STRIPE_API_BASE", "https://api.stripe.com/v1")
PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "mxn")

# How the washer's completion and full payment combine into COMPLETED:
# "either" (first signal wins), "service" (washer only), "both" (needs both)
COMPLETION_POLICY = os.getenv("COMPLETION_POLICY", "either").lower()
if COMPLETION_POLICY not in ("either", "service", "both"):
    raise RuntimeError(f"Invalid COMPLETION_POLICY: {COMPLETION_POLICY}")

# Washer proximity search
DEFAULT_SEARCH_RADIUS_KM = float(os.getenv("DEFAULT_SEARCH_RADIUS_KM", "10"))

# Pagination
DEFAULT_PAGE_LIMIT = 20
MAX_PAGE_LIMIT = 100
