"""
Logging setup for the admin API.

Configured once at import; modules call get_logger(__name__). DEBUG_MODE
turns on debug output for this app, while the pymongo driver stays at
WARNING unless debugging.
"""
import logging
from config import DEBUG_MODE

logging.basicConfig(
    level=logging.DEBUG if DEBUG_MODE else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logging.getLogger("pymongo").setLevel(logging.DEBUG if DEBUG_MODE else logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
