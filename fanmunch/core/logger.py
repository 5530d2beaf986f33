# fanmunch/core/logger.py
import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = "INFO", use_cloud: bool = False) -> None:
    """
    Configure root logging. With use_cloud, records also go to Google Cloud
    Logging through the client's handler.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    if use_cloud:
        import google.cloud.logging

        client = google.cloud.logging.Client()
        client.setup_logging(log_level=getattr(logging, level.upper(), logging.INFO))
        logging.getLogger("core.logger").info("Cloud logging enabled")


def mask_token(token: Optional[str]) -> str:
    """Show only the first 8 and last 6 characters of a push token."""
    if not token or len(token) < 20:
        return "[token]"
    return f"{token[:8]}...{token[-6:]}"
