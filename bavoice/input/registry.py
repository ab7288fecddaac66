"""Student registry: the bundled dataset, mirrored to the user cache.

Load order:
1. bavoice/data/students.json (bundled with the package)
2. <user_data_dir>/student-map-cache.json (last mirrored copy)
3. empty

Missing or corrupt files never raise; an empty registry is a valid state.
"""

from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence

from bavoice.common.cache import read_envelope, write_envelope
from bavoice.common.config import VoiceConfig
from bavoice.schema.student import StudentRecord


LOG_PREFIX = "registry"


def normalize_students(raw_students: Iterable, data_root: Optional[Path] = None) -> List[StudentRecord]:
    """Validate raw entries, dropping malformed ones and repeated hrefs."""
    out: List[StudentRecord] = []
    seen = set()
    for raw in raw_students or []:
        student = StudentRecord.from_raw(raw, data_root)
        if student is None or student.href in seen:
            continue
        seen.add(student.href)
        out.append(student)
    return out


def read_bundled_students(config: VoiceConfig, verbose: bool = False) -> List[StudentRecord]:
    envelope = read_envelope(config.bundled_students_path, list, verbose=verbose, log_prefix=LOG_PREFIX)
    return normalize_students(envelope["students"], config.data_root)


def read_cached_students(config: VoiceConfig, verbose: bool = False) -> List[StudentRecord]:
    envelope = read_envelope(config.student_cache_path, list, verbose=verbose, log_prefix=LOG_PREFIX)
    return normalize_students(envelope["students"], config.data_root)


def load_students(config: VoiceConfig, verbose: bool = False) -> List[StudentRecord]:
    """Load students, preferring the bundled dataset over the cached mirror."""
    bundled = read_bundled_students(config, verbose)
    if bundled:
        try:
            write_envelope(
                config.student_cache_path,
                [s.to_json() for s in bundled],
                verbose=verbose,
                log_prefix=LOG_PREFIX,
                source="bundled",
            )
        except OSError as e:
            if verbose:
                print(f"[{LOG_PREFIX}] [warn] could not mirror dataset to {config.student_cache_path}: {e}")
        return bundled

    cached = read_cached_students(config, verbose)
    if verbose:
        if cached:
            print(f"[{LOG_PREFIX}] [fallback] using cached mirror ({len(cached)} students)")
        else:
            print(f"[{LOG_PREFIX}] [empty] no bundled dataset and no cached mirror")
    return cached


class StudentRegistry:
    """Read-only, process-lifetime table of known students."""

    def __init__(self, students: Sequence[StudentRecord]):
        self._students = tuple(students)
        self._by_key: Dict[str, StudentRecord] = {}
        for s in self._students:
            self._by_key.setdefault(s.cache_key, s)

    @classmethod
    def load(cls, config: VoiceConfig, verbose: bool = False) -> "StudentRegistry":
        return cls(load_students(config, verbose=verbose))

    @property
    def students(self):
        return self._students

    def get(self, key: str) -> Optional[StudentRecord]:
        """Look up a student by cache key (href, else name)."""
        return self._by_key.get(key)

    def __len__(self) -> int:
        return len(self._students)

    def __iter__(self) -> Iterator[StudentRecord]:
        return iter(self._students)
