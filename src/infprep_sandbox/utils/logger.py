# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/infprep_sandbox

import sys
from pathlib import Path

from loguru import logger

__all__ = ["logger", "setup_logging"]


def setup_logging(level: str = "INFO", log_dir: str | Path = "logs") -> Path:
    """Configure the loguru sinks used by the server.

    Installs a human-readable stderr sink and a JSON file sink at
    ``<log_dir>/app.log``. Previously installed sinks are removed.

    Args:
        level: Minimum level for both sinks.
        log_dir: Directory for the rotating JSON log file. Created if missing.

    Returns:
        Path: The log file path.
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    log_file = log_path / "app.log"

    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
    )
    logger.add(
        log_file,
        level=level,
        rotation="50 MB",
        retention="10 days",
        serialize=True,
        enqueue=True,
    )
    return log_file
