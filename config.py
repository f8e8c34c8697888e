import os

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL") or os.getenv("MONGO_URI") or "mongodb://localhost:27017"
DATABASE_NAME = os.getenv("DATABASE_NAME", "ash_store")
DATABASE_TIMEOUT_MS = int(os.getenv("DATABASE_TIMEOUT_MS", 5000))

PORT = int(os.getenv("PORT", 5000))

# Product images are served verbatim from this directory under /images
IMAGES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "images")

ORDER_STRICT_TRANSITIONS = _flag("ORDER_STRICT_TRANSITIONS")
