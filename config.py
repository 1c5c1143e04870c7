"""
Tunables for the h-language interpreter and maze simulation.

Every value can be overridden through the environment.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("ignoring %s=%r: not an integer", name, raw)
        return default


# Grid is always normalized to GRID_SIZE x GRID_SIZE cells
GRID_SIZE: int = _env_int("HLANG_GRID_SIZE", 25)

# Macro expansion: calls from frames deeper than this fail
MAX_DEPTH: int = _env_int("HLANG_MAX_DEPTH", 1000)

# Simulation: primitive instructions applied before the run is stopped
MAX_STEPS: int = _env_int("HLANG_MAX_STEPS", 10_000)

LOG_LEVEL_DEFAULT: str = os.getenv("HLANG_LOG_LEVEL", "WARNING").upper()
