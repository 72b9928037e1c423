"""Timezone-aware timestamps for soft delete markers."""

from datetime import datetime
from typing import Optional

import pytz

from ..config import ParanoiaConfig, get_config


def current_time(config: Optional[ParanoiaConfig] = None) -> datetime:
    """
    Return the current time in the configured timezone.

    Args:
        config: Optional configuration, defaults to the global one

    Returns:
        Timezone-aware datetime
    """
    config = config or get_config()
    return datetime.now(pytz.timezone(config.timezone))
