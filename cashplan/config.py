"""
Configuration for the cashflow planner.

Values can be overridden through environment variables so the CLI and tests
can point saves and logging somewhere else without code changes.
"""
from __future__ import annotations
import os
from pathlib import Path


SAVES_DIR = Path(os.environ.get("CASHPLAN_SAVES_DIR", "saves"))
LOG_LEVEL_ENV = "CASHPLAN_LOG_LEVEL"

HISTORY_LIMIT = 15
HORIZON_CHOICES = (12, 18, 24)
DEFAULT_HORIZON = 12
DEFAULT_SCENARIO_NAME = "Principal"
SAVE_FORMAT_VERSION = "1.0"
