"""Query side: the student registry and the name resolver."""

from bavoice.input.registry import (
    StudentRegistry,
    load_students,
    normalize_students,
)
from bavoice.input.resolver import (
    rank,
    fuzzy_rank,
    score_korean,
    score_latin,
    normalize_latin,
)

__all__ = [
    # registry
    "StudentRegistry",
    "load_students",
    "normalize_students",
    # resolver
    "rank",
    "fuzzy_rank",
    "score_korean",
    "score_latin",
    "normalize_latin",
]
