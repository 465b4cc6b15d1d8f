# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Logging setup for applications embedding the assessor."""

import logging
from typing import Optional

from ..config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None) -> int:
    """
    Configure root logging for an assessment run.

    Args:
        level: Level name; defaults to the LOG_LEVEL setting.

    Returns:
        The numeric level that was applied.
    """
    level_name = (level or settings().log_level or "INFO").upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        # getLevelName returns "Level X" for unknown names
        numeric_level = logging.INFO

    logging.basicConfig(level=numeric_level, format=LOG_FORMAT, force=True)
    logging.getLogger(__name__).debug(f"Logging configured at {logging.getLevelName(numeric_level)}")
    return numeric_level
