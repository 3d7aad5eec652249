"""Environment-variable-based configuration for the nightly scheduler."""

from __future__ import annotations

import os
from pathlib import Path

OUTCOMES_PATH: Path = Path(os.environ.get("SESSION_OUTCOMES", "data/session_outcomes.json"))
PATTERNS_PATH: Path = Path(os.environ.get("ATHLETE_PATTERNS", "data/athlete_patterns.json"))
NIGHTLY_HOUR: int = int(os.environ.get("SCHEDULER_HOUR", "3"))
NIGHTLY_MINUTE: int = int(os.environ.get("SCHEDULER_MINUTE", "0"))
