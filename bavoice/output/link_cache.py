"""Link cache: student key -> audio page title, file identifiers and download links.

Two layers are consulted in order: the writable user cache
(<user_data_dir>/voice-link-cache.json) and the read-only copy bundled with
the package (bavoice/data/voice-links.json). Files are read whole, changed
in memory and written back with one atomic replace.
"""

import threading
from pathlib import Path
from typing import Any, Dict, Optional

from bavoice.common.cache import read_envelope, write_envelope
from bavoice.common.config import VoiceConfig
from bavoice.schema.audio import AudioResolution, read_link_entry


LOG_PREFIX = "link-cache"


class LinkCache:
    def __init__(self, writable_path: Path, bundled_path: Optional[Path] = None, verbose: bool = False):
        self.writable_path = Path(writable_path)
        self.bundled_path = Path(bundled_path) if bundled_path else None
        self.verbose = verbose
        self._lock = threading.Lock()
        self._writable: Optional[Dict[str, Any]] = None
        self._bundled: Optional[Dict[str, Any]] = None

    @classmethod
    def from_config(cls, config: VoiceConfig, verbose: bool = False) -> "LinkCache":
        return cls(config.voice_cache_path, config.bundled_voice_links_path, verbose=verbose)

    def _writable_entries(self) -> Dict[str, Any]:
        if self._writable is None:
            self._writable = read_envelope(self.writable_path, dict, verbose=self.verbose, log_prefix=LOG_PREFIX)["students"]
        return self._writable

    def _bundled_entries(self) -> Dict[str, Any]:
        if self._bundled is None:
            if self.bundled_path is None:
                self._bundled = {}
            else:
                self._bundled = read_envelope(self.bundled_path, dict, verbose=self.verbose, log_prefix=LOG_PREFIX)["students"]
        return self._bundled

    def raw_entry(self, key: str) -> Optional[Dict[str, Any]]:
        """Stored JSON for a key if it parses as a usable entry (writable layer first)."""
        if not key:
            return None
        with self._lock:
            for layer in (self._writable_entries(), self._bundled_entries()):
                raw = layer.get(key)
                if read_link_entry(raw) is not None:
                    return raw
        return None

    def get(self, key: str) -> Optional[AudioResolution]:
        """Cached resolution with a non-empty page title and at least one file, else None."""
        raw = self.raw_entry(key)
        resolution = read_link_entry(raw) if raw is not None else None
        if self.verbose:
            if resolution is not None:
                print(f"[{LOG_PREFIX}] [cache-hit] {key} ({len(resolution.file_identifiers)} files)")
            else:
                print(f"[{LOG_PREFIX}] [cache-miss] {key}")
        return resolution

    def put(self, key: str, resolution: AudioResolution, overwrite: bool = False) -> bool:
        """Store a resolution in memory. Existing entries are kept unless overwrite is set."""
        if not key or not resolution.is_resolved:
            return False
        with self._lock:
            entries = self._writable_entries()
            if key in entries and read_link_entry(entries[key]) is not None and not overwrite:
                return False
            entries[key] = resolution.to_json()
        return True

    def invalidate(self) -> None:
        """Drop the in-memory copies so the next read goes back to disk."""
        with self._lock:
            self._writable = None
            self._bundled = None

    def save(self) -> Path:
        """Write the writable layer back to disk in one replace."""
        with self._lock:
            entries = dict(self._writable_entries())
        return write_envelope(self.writable_path, entries, verbose=self.verbose, log_prefix=LOG_PREFIX)
