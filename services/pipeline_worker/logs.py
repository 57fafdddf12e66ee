from __future__ import annotations

import json
import logging
from typing import Any


def setup_logger(name: str, level: str = "INFO") -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(level.upper())
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.handlers = [handler]
    return logger


def json_log(logger: logging.Logger, level: int, message: str, **extra: Any) -> None:
    payload = {"message": message, **extra}
    logger.log(level, json.dumps(payload, default=str))
