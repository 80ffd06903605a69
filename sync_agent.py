#!/usr/bin/env python3
"""
Jarvis Kanban — sync agent

Polls the board sync file, lets Jarvis triage its tasks and applies queued
assistant replies, then mirrors the board into .sync/latest.json and
.sync/summary.md.

Usage:
    python sync_agent.py --file ~/jarvis-kanban-sync.json
    python sync_agent.py --file board.json --interval 3000
    python sync_agent.py --file board.json --init     # seed the file if missing
    SYNC_FILE=board.json python sync_agent.py
"""

import argparse
import logging
import sys
from pathlib import Path

from kanban_sync.config import Config, ConfigError, parse_interval
from kanban_sync.fileio import write_json_atomic
from kanban_sync.poller import SyncPoller
from kanban_sync.seed import default_document

logger = logging.getLogger("sync-agent")


def parse_args(argv=None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(
        description="Jarvis Kanban sync agent — sync file → .sync/latest.json + summary.md"
    )
    ap.add_argument("--file", default=None, help="Board sync file (or SYNC_FILE)")
    ap.add_argument("--interval", default=None, help="Poll interval in ms (or SYNC_INTERVAL, default 1500)")
    ap.add_argument("--out", default=None, help="JSON mirror filename under .sync (default latest.json)")
    ap.add_argument("--summary", default=None, help="Markdown summary filename under .sync (default summary.md)")
    ap.add_argument("--sync-dir", default=None, help="Output directory (default ./.sync)")
    ap.add_argument("--config", default=None, help="Path to sync.yaml (or SYNC_CONFIG)")
    ap.add_argument("--log-level", default=None, help="Logging level (or SYNC_LOG_LEVEL, default INFO)")
    ap.add_argument("--init", action="store_true", help="Write the default board if the sync file is missing")
    ap.add_argument("--once", action="store_true", help="Run a single poll cycle and exit")
    return ap.parse_args(argv)


def build_config(args: argparse.Namespace, environ=None) -> Config:
    """Defaults → YAML → environment → CLI arguments."""
    cfg = Config.load(args.config).apply_env(environ)

    # CLI overrides
    if args.file:
        cfg.sync_file = args.file
    if args.interval:
        cfg.interval_ms = parse_interval(args.interval)
    if args.out:
        cfg.latest_name = args.out
    if args.summary:
        cfg.summary_name = args.summary
    if args.sync_dir:
        cfg.sync_dir = args.sync_dir
    if args.log_level:
        cfg.log_level = args.log_level

    return cfg.validate()


def seed_if_missing(path: Path) -> bool:
    if path.exists():
        return False
    write_json_atomic(path, default_document().to_dict())
    logger.info(f"Seeded default board at {path}")
    return True


def main(argv=None) -> int:
    try:
        args = parse_args(argv)
        cfg = build_config(args)
    except ConfigError as e:
        print(f"[sync-agent] {e}", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, str(cfg.log_level).upper(), logging.INFO),
        format="%(asctime)s [sync-agent] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    if args.init:
        seed_if_missing(cfg.source_path)

    poller = SyncPoller(cfg)
    logger.info(
        f"Watching {cfg.source_path} every {cfg.interval_ms} ms → {cfg.sync_dir_path}"
    )
    poller.run(max_cycles=1 if args.once else None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
