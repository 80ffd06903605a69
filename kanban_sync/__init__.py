# Kanban sync: file-based board synchronization for the Jarvis agent
#
# Components:
#   schema.py   - Board document model (projects, boards, columns, tasks, messages)
#   fileio.py   - JSON read + atomic write helpers
#   replies.py  - Assistant reply queue (append by producers, drained by the poller)
#   mutator.py  - Auto-triage and reply application on the active board
#   summary.py  - latest.json / summary.md rendering
#   journal.py  - JSONL record of board-changing cycles
#   config.py   - Runtime configuration (defaults → YAML → env → CLI)
#   seed.py     - Default board document
#   poller.py   - mtime-gated polling loop
