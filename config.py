import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")

    # Local: SQLite file next to the project.
    # Production: point DATABASE_URL at Postgres.
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///local.db")

    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SECURE = _env_bool("SESSION_COOKIE_SECURE")
    PERMANENT_SESSION_LIFETIME = 30 * 24 * 60 * 60

    APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Handle that gets the administrator role when its account is first created.
    BOOTSTRAP_ADMIN_HANDLE = os.getenv("BOOTSTRAP_ADMIN_HANDLE", "admin")
    PASSWORD_MIN_LENGTH = int(os.getenv("PASSWORD_MIN_LENGTH", "6"))

    # 12 bytes -> 16 url-safe chars, 96 bits
    PUBLIC_TOKEN_BYTES = int(os.getenv("PUBLIC_TOKEN_BYTES", "12"))

    # Text-generation integration
    AI_API_KEY = os.getenv("AI_API_KEY") or os.getenv("OPENAI_API_KEY")
    AI_BASE_URL = os.getenv("AI_BASE_URL")
    AI_MODEL = os.getenv("AI_MODEL", "gpt-4o-mini")
    AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", "30"))
    AI_MAX_INPUT_LENGTH = int(os.getenv("AI_MAX_INPUT_LENGTH", "5000"))
    AI_MAX_COMPLETION_TOKENS = int(os.getenv("AI_MAX_COMPLETION_TOKENS", "2048"))

    AI_RATE_LIMIT = int(os.getenv("AI_RATE_LIMIT", "20"))
    AI_RATE_WINDOW_SECONDS = int(os.getenv("AI_RATE_WINDOW_SECONDS", "3600"))
    AI_RATE_MAX_KEYS = int(os.getenv("AI_RATE_MAX_KEYS", "10000"))
