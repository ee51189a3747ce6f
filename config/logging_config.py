"""Rich-handler logging preset for the device agent."""
import logging
from typing import Optional
from rich.logging import RichHandler
from .app_config import settings

# Chatty third-party loggers kept at WARNING unless the agent runs at DEBUG.
_NOISY = ("urllib3", "requests")

def configure(level: Optional[str] = None):
    level_name = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(name)-24s │ %(message)s",
        datefmt="%H:%M:%S",
        # payloads and command params contain [brackets]; keep markup off
        handlers=[RichHandler(rich_tracebacks=True, markup=False, show_path=False)],
    )
    if level_name != "DEBUG":
        for name in _NOISY:
            logging.getLogger(name).setLevel(logging.WARNING)
