"""
Roadtrip – plan a drive past every location of a restaurant brand.
Top-level package.  Exposes a tiny public API and
configures logging early so every sub-module inherits it.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Final

__all__ = ["logger", "PROJECT_ROOT", "DEFAULT_CACHE_DIR", "OUTPUT_DIR"]

# ---------- paths ----------
PROJECT_ROOT: Final[Path] = Path(__file__).resolve().parent.parent
DEFAULT_CACHE_DIR: Final[Path] = PROJECT_ROOT / ".roadtrip_cache"
OUTPUT_DIR: Final[Path] = PROJECT_ROOT / "output"

# ---------- logging ----------
LOG_LEVEL = os.getenv("ROADTRIP_LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger("roadtrip")
logger.debug("Logging initialised (level=%s)", LOG_LEVEL)
