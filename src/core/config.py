"""
Configuration constants and environment setup.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# PATHS
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent
CONFIG_DIR = Path(os.environ.get("CALENDAR_CONFIG_DIR", PROJECT_ROOT / "config"))
DATA_DIR = Path(os.environ.get("CALENDAR_DATA_DIR", PROJECT_ROOT / "data"))
USERS_FILE = DATA_DIR / "users.json"
TOKENS_DIR = DATA_DIR / "tokens"
DB_PATH = DATA_DIR / "db" / "calendar-assistant.db"

# =============================================================================
# AI SERVICE CONFIGURATION
# =============================================================================

# Key from the environment first, local file for development
AI_API_KEY = os.environ.get("OPENAI_API_KEY", "")
AI_API_KEY_FILE = Path(os.environ.get("AI_API_KEY_FILE", CONFIG_DIR / "ai_api_key.txt"))
AI_MODEL = os.environ.get("AI_MODEL", "gpt-4o-mini")
AI_BASE_URL = os.environ.get("AI_BASE_URL") or None

# =============================================================================
# GOOGLE CALENDAR CONFIGURATION
# =============================================================================

GOOGLE_CREDENTIALS_BASE64 = os.environ.get("GOOGLE_CREDENTIALS_BASE64", "")
GOOGLE_CREDENTIALS_FILE = Path(
    os.environ.get("GOOGLE_CREDENTIALS_FILE", CONFIG_DIR / "credentials.json")
)
GOOGLE_SCOPES = ["https://www.googleapis.com/auth/calendar"]
OAUTH_REDIRECT_URI = os.environ.get(
    "OAUTH_REDIRECT_URI", "http://localhost:8080/api/events/auth/callback"
)
CALENDAR_TIMEZONE = os.environ.get("CALENDAR_TIMEZONE", "UTC")
DEFAULT_CALENDAR_ID = "primary"
TOKEN_REFRESH_MARGIN_SECONDS = 60

# =============================================================================
# API CONFIGURATION
# =============================================================================

API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "8080"))
API_DEBUG = os.environ.get("API_DEBUG", "false").lower() == "true"
FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:3000")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("CORS_ORIGINS", FRONTEND_URL).split(",")
    if origin.strip()
]
GATEWAY_CACHE_SIZE = int(os.environ.get("GATEWAY_CACHE_SIZE", "256"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
API_VERSION = "1.0.0"
