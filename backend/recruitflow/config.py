import os
import logging
from dotenv import load_dotenv

load_dotenv()

AI_PARSE_ENDPOINT = os.getenv(
    "AI_PARSE_ENDPOINT",
    "http://localhost:3004/api/ai/parse-resume"
)
AI_MODEL = os.getenv("AI_MODEL", "qwen")
AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", "30"))

MIN_RESUME_TEXT_LENGTH = int(os.getenv("MIN_RESUME_TEXT_LENGTH", "20"))

MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
MONGO_DB = os.getenv("MONGO_DB", "recruitflow")
MONGO_TIMEOUT_MS = int(os.getenv("MONGO_TIMEOUT_MS", "2000"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def configure_logging(level: str = None):
    """Set up root logging once for the service."""
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
