"""
Logging Configuration

Configures the root logger once at process startup.
"""

import logging
import os
import sys

_configured = False


def setup_logging(level: str = None) -> None:
    """
    Configure the root logger for the application.

    Safe to call more than once; only the first call takes effect.

    Args:
        level: Log level name, defaults to LOG_LEVEL (INFO)
    """
    global _configured
    if _configured:
        return

    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s - %(name)s - [%(levelname)s] - %(message)s",
        stream=sys.stdout,
    )

    # Silence noisy libraries
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("google").setLevel(logging.WARNING)

    _configured = True
