"""JSON cache files with an {updatedAt, students} envelope."""

import json
import os
import time
from pathlib import Path
from typing import Any, Dict, Optional

from bavoice.common.errors import DataUnavailable


def now_ms() -> int:
    return int(time.time() * 1000)


def read_json(path: Path) -> Any:
    """Read and parse a JSON file. Raises DataUnavailable if missing or invalid."""
    if not path.exists():
        raise DataUnavailable(f"{path} does not exist")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise DataUnavailable(f"{path}: {e}") from e


def read_envelope(
    path: Path,
    students_type: type = dict,
    verbose: bool = False,
    log_prefix: str = "cache",
) -> Dict[str, Any]:
    """Read a cache envelope. Returns an empty envelope if not cached or invalid.

    Args:
        path: Cache file path
        students_type: Expected type of the "students" field (dict or list)
        verbose: Enable verbose logging
        log_prefix: Prefix for log messages (e.g., "registry", "link-cache")
    """
    empty = {"updatedAt": 0, "students": students_type()}
    try:
        data = read_json(path)
    except DataUnavailable as e:
        if verbose:
            print(f"[{log_prefix}] [miss] {e}")
        return empty
    if isinstance(data, list) and students_type is list:
        # Bare list of students (older dataset files)
        return {"updatedAt": 0, "students": data}
    if not isinstance(data, dict):
        if verbose:
            print(f"[{log_prefix}] [invalid] {path.name}: not a JSON object")
        return empty
    students = data.get("students")
    if not isinstance(students, students_type):
        students = students_type()
    updated_at = data.get("updatedAt")
    if not isinstance(updated_at, (int, float)):
        updated_at = 0
    if verbose:
        print(f"[{log_prefix}] [loaded] {path.name}: {len(students)} entries")
    return {"updatedAt": updated_at, "students": students}


def write_envelope(
    path: Path,
    students: Any,
    updated_at: Optional[int] = None,
    verbose: bool = False,
    log_prefix: str = "cache",
    **extra: Any,
) -> Path:
    """Write a cache envelope via temp file + replace, so readers never see a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {"updatedAt": now_ms() if updated_at is None else updated_at}
    payload.update(extra)
    payload["students"] = students
    tmp = path.with_suffix(path.suffix + f".tmp.{os.getpid()}")
    try:
        tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
        tmp.replace(path)
    finally:
        if tmp.exists():
            tmp.unlink()
    if verbose:
        print(f"[{log_prefix}] [file] Saved {path.name} ({len(students)} entries)")
    return path


__all__ = [
    "now_ms",
    "read_json",
    "read_envelope",
    "write_envelope",
]
