from __future__ import annotations
import logging
from rich.logging import RichHandler


_configured = False


def get_logger(name: str = "voice_relay", level: str = None) -> logging.Logger:
    global _configured
    if not _configured:
        logging.basicConfig(
            level=logging.INFO,
            format="%(message)s",
            datefmt="[%X]",
            handlers=[RichHandler(rich_tracebacks=True)]
        )
        _configured = True
    if level:
        logging.getLogger("voice_relay").setLevel(level.upper())
    return logging.getLogger(name)
