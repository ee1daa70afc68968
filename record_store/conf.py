"""record-sync - Central path configuration."""

import os
from pathlib import Path

USER_HOME = Path.home()
RECORD_SYNC_HOME = Path(os.environ.get("RECORD_SYNC_HOME") or USER_HOME / ".record_sync")

CONFIG_FILE = RECORD_SYNC_HOME / "config.json"
LOG_FILE = RECORD_SYNC_HOME / "record_sync.log"
