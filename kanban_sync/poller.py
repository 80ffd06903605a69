"""
SyncPoller — mtime-gated polling loop over the sync file.

Each cycle:
  1. stat the sync file; skip when its mtime has not advanced
  2. read + parse, run the mutator (auto-triage, reply queue)
  3. write the file back if the mutator changed anything
  4. republish latest.json + summary.md

Read/parse failures and a vanished sync file never end the loop: the last
good snapshot is republished instead so the derived artifacts never go away.
"""
import logging
import os
import time
from enum import Enum
from typing import Callable, Optional

from .config import Config
from .fileio import read_json, write_json_atomic, write_text_atomic
from .journal import SyncJournal
from .mutator import mutate
from .replies import ReplyQueue
from .schema import BoardDocument, MalformedDocument, parse_document, utc_now
from .summary import render

logger = logging.getLogger(__name__)


class PollStatus(Enum):
    WAITING = "waiting"          # sync file does not exist yet
    UNCHANGED = "unchanged"      # mtime did not advance
    UPDATED = "updated"          # processed and published
    RECOVERED = "recovered"      # read or write-back failed, last good republished
    FAILED = "failed"            # same, with nothing to republish


class SyncPoller:
    """
    Owns the per-loop state: ``last_mtime`` (0.0) and ``last_good`` (None).

    Instances are independent, so several can run side by side (tests do).
    ``clock`` supplies the epoch seconds used for exportedAt stamps.
    """

    def __init__(self, cfg: Config, clock: Callable[[], float] = time.time,
                 sleep: Callable[[float], None] = time.sleep):
        self.cfg = cfg
        self.source = cfg.source_path
        self.queue = ReplyQueue(cfg.queue_path)
        self.journal = SyncJournal(cfg.journal_path) if cfg.journal_path else None
        self._clock = clock
        self._sleep = sleep
        self.reset()

    def reset(self) -> None:
        self.last_mtime: float = 0.0
        self.last_good: Optional[BoardDocument] = None
        self._last_good_at: Optional[str] = None

    def _now(self) -> str:
        return utc_now(self._clock())

    # ── One cycle ────────────────────────────────────────

    def poll_once(self) -> PollStatus:
        if not self.source.exists():
            logger.warning(f"waiting for {self.source}")
            if self.last_good is not None:
                self._publish(self.last_good)
            return PollStatus.WAITING

        try:
            mtime = os.stat(self.source).st_mtime
            if mtime <= self.last_mtime:
                return PollStatus.UNCHANGED
            # ValueError covers JSONDecodeError and UnicodeDecodeError
            document = parse_document(read_json(self.source))
        except (OSError, ValueError, MalformedDocument) as e:
            return self._recover(f"failed to read sync file: {e}")

        # the queue is emptied only once the replies are on disk
        result = mutate(document, self.queue, self.source, clear_queue=False)
        if result.changed:
            document.exported_at = self._now()
            try:
                write_json_atomic(self.source, document.to_dict())
            except OSError as e:
                # last_mtime stays put so the next cycle retries
                return self._recover(f"failed to write sync file: {e}")
            logger.info(f"applied {', '.join(result.actions) or 'changes'} to {self.source.name}")
            if self.journal:
                self.journal.log(
                    PollStatus.UPDATED.value, str(self.source), actions=result.actions
                )
        if result.replies:
            self.queue.clear()
            logger.info(f"Drained {len(result.replies)} queued repl{'y' if len(result.replies) == 1 else 'ies'}")

        self.last_mtime = mtime
        self.last_good = document
        self._last_good_at = self._now()
        self._publish(document)
        return PollStatus.UPDATED

    def _recover(self, reason: str) -> PollStatus:
        logger.warning(reason)
        if self.last_good is None:
            return PollStatus.FAILED
        self._publish(self.last_good)
        return PollStatus.RECOVERED

    def _publish(self, document: BoardDocument) -> None:
        latest_json, summary_md = render(document, self._last_good_at)
        try:
            self.cfg.sync_dir_path.mkdir(parents=True, exist_ok=True)
            write_text_atomic(self.cfg.latest_path, latest_json)
            write_text_atomic(self.cfg.summary_path, summary_md)
        except OSError as e:
            logger.warning(f"failed to write outputs: {e}")
            return
        logger.info(f"updated {self._now()} from {self.source.name}")

    # ── Loop ─────────────────────────────────────────────

    def run(self, max_cycles: Optional[int] = None) -> int:
        """
        Poll immediately, then every ``interval_ms`` after each cycle ends.

        Returns the number of cycles run. Stops on KeyboardInterrupt or after
        ``max_cycles``.
        """
        interval = self.cfg.interval_ms / 1000
        cycles = 0
        try:
            while max_cycles is None or cycles < max_cycles:
                try:
                    self.poll_once()
                except Exception:
                    logger.exception("poll cycle failed")
                cycles += 1
                if max_cycles is not None and cycles >= max_cycles:
                    break
                self._sleep(interval)
        except KeyboardInterrupt:
            logger.info("Stopping...")
        return cycles
