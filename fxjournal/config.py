import os
import logging
import tempfile
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def load_environment():
    """Load .env then .env.local from the working directory (later file wins)"""
    loaded = False
    for name in (".env", ".env.local"):
        env_path = os.path.join(os.getcwd(), name)
        if os.path.exists(env_path):
            load_dotenv(env_path, override=True)
            logger.info(f"Loaded environment from {name}")
            loaded = True
    if not loaded:
        logger.info("No .env files found. Using existing environment variables.")


load_environment()

APP_ENV = os.getenv("APP_ENV", "")
IS_DEVELOPMENT = APP_ENV == "development"
IS_PRODUCTION = APP_ENV == "production"

# ----------------- Storage -----------------
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "memory")
MONGO_URI = os.getenv("MONGO_URI")
DB_NAME = os.getenv("DB_NAME", "FXJournal")

# ----------------- Auth -----------------
# Support both SECRET_KEY (local) and JWT_SECRET (hosted configuration)
SECRET_KEY = os.getenv("SECRET_KEY") or os.getenv("JWT_SECRET") or "fallback_secret"
ALGORITHM = os.getenv("ALGORITHM") or os.getenv("JWT_ALGORITHM") or "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 1440))
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")

# ----------------- Cloudinary -----------------
CLOUDINARY_CLOUD_NAME = os.getenv("CLOUDINARY_CLOUD_NAME")
CLOUDINARY_API_KEY = os.getenv("CLOUDINARY_API_KEY")
CLOUDINARY_API_SECRET = os.getenv("CLOUDINARY_API_SECRET")
CLOUDINARY_UPLOAD_TIMEOUT = int(os.getenv("CLOUDINARY_UPLOAD_TIMEOUT", 30))

# ----------------- Uploads -----------------
UPLOAD_TEMP_DIR = os.getenv("UPLOAD_TEMP_DIR") or os.path.join(tempfile.gettempdir(), "uploads_temp")
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", 5 * 1024 * 1024))

# ----------------- Chart capture -----------------
BROWSERLESS_TOKEN = os.getenv("BROWSERLESS_TOKEN", "")
BROWSERLESS_URL = os.getenv("BROWSERLESS_URL", "https://production-sfo.browserless.io/screenshot")
LOG_TRADINGVIEW = os.getenv("LOG_TRADINGVIEW", "false").lower() == "true"
LOG_DIR = os.getenv("LOG_DIR") or os.path.join(os.getcwd(), "logs")

# ----------------- Market data -----------------
TWELVEDATA_API_KEY = os.getenv("TWELVEDATA_API_KEY")
TWELVEDATA_BASE_URL = "https://api.twelvedata.com"

# ----------------- Misc -----------------
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5000",
    "http://127.0.0.1:5000",
    "http://localhost:5173",
]
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()] or DEFAULT_CORS_ORIGINS

TRADE_NOTIFY_DEBOUNCE_SECONDS = float(os.getenv("TRADE_NOTIFY_DEBOUNCE_SECONDS", 0.5))
ANALYTICS_CACHE_SECONDS = int(os.getenv("ANALYTICS_CACHE_SECONDS", 300))
