import os
import logging
from dotenv import load_dotenv

load_dotenv()

# Basic configuration loaded from environment with safe defaults for development
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./cloudblitz.db")
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Comma separated list of allowed browser origins
CORS_ORIGIN: str = os.getenv("CORS_ORIGIN", "http://localhost:3000")

# Security / JWT configuration
# SECRET_KEY and REFRESH_SECRET_KEY should be overridden in production via environment
SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-key-change-me")
REFRESH_SECRET_KEY: str = os.getenv("REFRESH_SECRET_KEY", "dev-refresh-secret-key-change-me")
ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
try:
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
except Exception as e:
    logging.error(e, exc_info=True)
    ACCESS_TOKEN_EXPIRE_MINUTES = 60

try:
    REFRESH_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("REFRESH_TOKEN_EXPIRE_MINUTES", str(7 * 24 * 60)))
except Exception as e:
    logging.error(e, exc_info=True)
    REFRESH_TOKEN_EXPIRE_MINUTES = 7 * 24 * 60

# Pagination bounds for list endpoints
try:
    DEFAULT_PAGE_SIZE: int = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))
except Exception as e:
    logging.error(e, exc_info=True)
    DEFAULT_PAGE_SIZE = 10

try:
    MAX_PAGE_SIZE: int = int(os.getenv("MAX_PAGE_SIZE", "100"))
except Exception as e:
    logging.error(e, exc_info=True)
    MAX_PAGE_SIZE = 100
