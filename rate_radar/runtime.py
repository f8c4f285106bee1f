"""Runtime globals shared across modules without import cycles."""
from __future__ import annotations

from datetime import datetime

VERSION = "1.1.0"
USER_AGENT = f"RateRadar/{VERSION}"

# Track startup time (module import time).
STARTUP_TIME = datetime.now()
