"""JSON file helpers shared by the poller, the reply queue and the CLIs."""
import json
import os
from pathlib import Path
from typing import Any


def read_json(path: Path) -> Any:
    """Read and decode a JSON file. Raises OSError / json.JSONDecodeError."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def dump_json(data: Any) -> str:
    """Pretty-printed JSON, two-space indent, non-ASCII kept as-is."""
    return json.dumps(data, indent=2, ensure_ascii=False)


def write_json_atomic(path: Path, data: Any) -> None:
    """Write JSON to ``path`` via a temp file + rename so readers never see a partial file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    write_text_atomic(path, dump_json(data))


def write_text_atomic(path: Path, text: str) -> None:
    path = Path(path)
    tmp_file = path.with_name(f"{path.name}.{os.getpid()}.tmp")
    with open(tmp_file, "w", encoding="utf-8") as f:
        f.write(text)
    os.replace(tmp_file, path)
