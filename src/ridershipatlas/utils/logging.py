from __future__ import annotations

import logging
from typing import Optional

from ridershipatlas.config.models import LoggingSettings


# Third-party loggers that are chatty at INFO while decoding workbooks or serving uploads.
_QUIET_LOGGERS = ("openpyxl", "multipart", "python_multipart")


def configure_logging(settings: LoggingSettings) -> None:
    level = getattr(logging, settings.level.upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Invalid log level: {settings.level}")

    handlers: Optional[list[logging.Handler]] = None
    if settings.file is not None:
        settings.file.parent.mkdir(parents=True, exist_ok=True)
        handlers = [logging.FileHandler(settings.file, encoding="utf-8"), logging.StreamHandler()]

    logging.basicConfig(level=level, format=settings.format, handlers=handlers)

    # openpyxl reports style/validation quirks of agency workbooks through `warnings`.
    logging.captureWarnings(True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
