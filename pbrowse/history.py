"""Visit history for the browsing shell.

Every successful navigation is appended to a CSV file so that
:mod:`pbrowse.stats` can report on it later.
"""

from __future__ import annotations

import csv
import logging
import os
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

HISTORY_FILE = "browser_history.csv"
FIELDS = ["timestamp", "url", "title"]


class HistoryLog:
    """Append-only CSV log of visited pages."""

    def __init__(self, path: str = HISTORY_FILE) -> None:
        self.path = path

    def record(self, url: str, title: str) -> None:
        write_header = not os.path.exists(self.path) or os.path.getsize(self.path) == 0
        try:
            with open(self.path, "a", newline="", encoding="utf8") as f:
                writer = csv.writer(f)
                if write_header:
                    writer.writerow(FIELDS)
                writer.writerow([datetime.now(timezone.utc).isoformat(), url, title])
        except OSError as ex:
            logger.warning("Could not write history to %s: %s", self.path, ex)
