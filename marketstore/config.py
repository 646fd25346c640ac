import os
import sys
import logging

# Settings are read once from the environment at import time.

PORT = int(os.getenv("PORT", "8085"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# Catalog listing
LISTING_AVAILABLE_ONLY = os.getenv("LISTING_AVAILABLE_ONLY", "true").lower() in ("1", "true", "yes", "on")
DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))

# Checkout replays kept per buyer+key, oldest dropped first
IDEMPOTENCY_MAX_KEYS = int(os.getenv("IDEMPOTENCY_MAX_KEYS", "1000"))

# Comments
DEFAULT_COMMENT_LIMIT = 5

# External image host
IMAGE_HOST_URL = os.getenv("IMAGE_HOST_URL")
IMAGE_HOST_API_KEY = os.getenv("IMAGE_HOST_API_KEY")
IMAGE_HOST_FOLDER = os.getenv("IMAGE_HOST_FOLDER", "farmer_products")
IMAGE_UPLOAD_TIMEOUT = float(os.getenv("IMAGE_UPLOAD_TIMEOUT", "10"))


def setup_logging():
    """Configures the root "marketstore" logger once."""
    log = logging.getLogger("marketstore")
    log.setLevel(LOG_LEVEL)
    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log.addHandler(handler)
    return log
