# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

import logging
import json
from logging.handlers import RotatingFileHandler
import os
from typing import Union

# Log categories carried on each record via ``extra={"category": ...}``
CATEGORY_ACCESS_TOKEN = "AccessToken"
CATEGORY_REFRESHING_PROVIDER = "RefreshingAuthProvider"


class JsonFormatter(logging.Formatter):
    def format(self, record):
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "category": getattr(record, "category", None),
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record)


def setup_credential_logger(log_dir: Union[str, os.PathLike] = "logs") -> logging.Logger:
    """Sets up a dedicated JSON log file for credential lifecycle events."""
    log_dir = os.fspath(log_dir)
    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    # Use the same named logger as the rest of the library
    logger = logging.getLogger("credential_keeper")
    logger.setLevel(logging.INFO)

    # Add handler only if it hasn't been added before
    if not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        # Use a rotating file handler to keep log files from growing too large
        handler = RotatingFileHandler(
            os.path.join(log_dir, "credentials.log"),
            maxBytes=5 * 1024 * 1024,  # 5 MB
            backupCount=2,
        )
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)

    return logger
