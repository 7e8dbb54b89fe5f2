# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import logging
import os
import sys

LOG_FORMAT = "[HARNESS] %(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

LOG_LEVEL_ENV = "TILECACHE_HARNESS_LOG"


def log_level_mapping(level: str) -> int:
    """
    The TILECACHE_HARNESS_LOG variable is set using "debug", "info", "warn" etc.
    This function maps those to the appropriate logging level and defaults to
    INFO if the variable is not set or a bad value.
    """
    level = level.strip().lower()
    if level == "debug":
        return logging.DEBUG
    elif level == "info":
        return logging.INFO
    elif level == "warn" or level == "warning":
        return logging.WARNING
    elif level == "error":
        return logging.ERROR
    elif level == "critical":
        return logging.CRITICAL
    else:
        return logging.INFO


def configure_harness_logging(level: str | None = None) -> int:
    """
    A single place to configure logging for the harness and the embedded
    service. Returns the level that was applied.
    """
    # First, remove any existing handlers to avoid duplication
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    harness_level = log_level_mapping(level or os.environ.get(LOG_LEVEL_ENV, "info"))

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(handler)
    root_logger.setLevel(harness_level)

    configure_uvicorn_logging(harness_level)
    return harness_level


def configure_uvicorn_logging(harness_level: int) -> None:
    """
    The embedded server runs with log_config=None, so its loggers only need
    to propagate to the root handler. Access logs are noisy under test and
    are raised to WARNING.
    """
    for logger_name in ("uvicorn", "uvicorn.error"):
        logger = logging.getLogger(logger_name)
        logger.handlers = []
        logger.setLevel(harness_level)
        logger.propagate = True

    access_logger = logging.getLogger("uvicorn.access")
    access_logger.handlers = []
    access_logger.setLevel(max(harness_level, logging.WARNING))
    access_logger.propagate = True
