"""
SyncJournal — structured JSONL record of board-changing cycles.

One line per cycle that rewrote the sync file, listing what the mutator did
(read:<task>, review:<task>, complete:<task>, reply:<id>).
"""
import json
import logging
from pathlib import Path

from .schema import utc_now

logger = logging.getLogger(__name__)


class SyncJournal:
    """Appends structured JSON entries to a .jsonl file."""

    def __init__(self, log_path: Path):
        self.log_path = Path(log_path)

    def log(self, status: str, source: str, **extra):
        """Append one entry. Extra kwargs are merged in, None values dropped."""
        entry = {
            "ts": utc_now(),
            "status": status,
            "source": source,
        }
        for k, v in extra.items():
            if v is not None:
                entry[k] = v

        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False) + "\n")
        except OSError as e:
            logger.error(f"Failed to write sync journal: {e}")
