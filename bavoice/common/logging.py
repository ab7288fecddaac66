"""Logging utilities for lookups and batch sync."""

import contextvars
import sys
import threading
from typing import Optional


# Worker context. Context variables (not thread-locals) so that
# asyncio.to_thread carries them into the thread running the fetch.
_WORKER_IDX: contextvars.ContextVar[Optional[int]] = contextvars.ContextVar("bavoice_worker", default=None)
_CURRENT_ITEM: contextvars.ContextVar[str] = contextvars.ContextVar("bavoice_item", default="")

_EMOJI = {
    "cache-hit": "🎯",
    "cache-miss": "💥",
    "fetch": "🌐",
    "file": "💾",
}


def set_worker_log_context(worker_idx: Optional[int], current_item: str = "") -> None:
    """Set the logging context for the current worker task."""
    _WORKER_IDX.set(worker_idx)
    _CURRENT_ITEM.set(current_item or "")


def clear_worker_log_context() -> None:
    _WORKER_IDX.set(None)
    _CURRENT_ITEM.set("")


def _context_prefix() -> str:
    idx = _WORKER_IDX.get()
    item = _CURRENT_ITEM.get()
    tags = f"[w{idx:02d}]" if idx is not None else "[main]"
    if item:
        tags += f" [{item}]"
    return tags + " "


def _emoji_for(line: str) -> str:
    """Emoji for the status tag, e.g. "[link-cache] [cache-hit] ..." -> 🎯."""
    rest = line
    for _ in range(2):
        if not rest.startswith("["):
            return ""
        end = rest.find("]")
        if end == -1:
            return ""
        emoji = _EMOJI.get(rest[1:end])
        if emoji:
            return emoji
        rest = rest[end + 1:].lstrip()
    return ""


class _WorkerPrefixedWriter:
    """Wrapper for stdout that adds the worker index and current item to output."""

    def __init__(self, wrapped):
        self._wrapped = wrapped
        self._lock = threading.Lock()

    def write(self, s: str) -> int:
        if not isinstance(s, str):
            return 0
        # print() writes the trailing newline separately
        if s == "\n":
            with self._lock:
                self._wrapped.write("\n")
                self.flush()
            return 1

        prefix = _context_prefix()
        with self._lock:
            parts = s.split("\n")
            for i, part in enumerate(parts):
                if part == "" and i == len(parts) - 1:
                    continue
                emoji = _emoji_for(part)
                self._wrapped.write(prefix + (emoji + " " if emoji else "") + part)
                if i < len(parts) - 1:
                    self._wrapped.write("\n")
            self.flush()
        return len(s)

    def flush(self) -> None:
        try:
            self._wrapped.flush()
        except Exception:
            pass

    def isatty(self) -> bool:
        try:
            return bool(self._wrapped.isatty())
        except Exception:
            return False


def setup_worker_prefixed_stdout() -> None:
    """Install the worker-prefixed stdout writer (idempotent)."""
    if isinstance(sys.stdout, _WorkerPrefixedWriter):
        return
    try:
        sys.stdout.reconfigure(line_buffering=True)  # type: ignore
    except Exception:
        pass
    sys.stdout = _WorkerPrefixedWriter(sys.stdout)  # type: ignore
