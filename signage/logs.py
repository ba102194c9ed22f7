from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from .models.config import LoggingSettings

__all__ = ["configure_logging"]


def configure_logging(settings: Optional[LoggingSettings] = None) -> None:
    """Configure root logging from settings; later calls replace handlers."""

    settings = settings or LoggingSettings()
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if settings.file:
        path = Path(settings.file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, settings.level),
        format=settings.format,
        handlers=handlers,
        force=True,
    )
