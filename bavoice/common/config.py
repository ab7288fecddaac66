"""Runtime configuration.

A voice-config.json file can override any field of VoiceConfig:
- wiki_base_urls: wiki mirrors tried in order (default: ["https://bluearchive.wiki"])
- static_host / static_audio_root: where the wiki serves audio files
- timeout_s, max_retries: per-request network limits
- concurrency: batch sync workers (clamped to MAX_SYNC_CONCURRENCY)
- fuzzy_score_cutoff: minimum rapidfuzz score for the fuzzy name fallback
- user_data_dir: where the writable caches live

Environment variables win over the file: BAVOICE_USER_DATA_DIR,
BAVOICE_CONCURRENCY, BAVOICE_TIMEOUT.
"""

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import List, Optional

from bavoice.common.utils import _load_env_file


CONFIG_FILENAME = "voice-config.json"

PACKAGE_DATA_ROOT = Path(__file__).resolve().parent.parent / "data"

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)

STUDENT_MAP_CACHE_FILE = "student-map-cache.json"
VOICE_LINK_CACHE_FILE = "voice-link-cache.json"
BUNDLED_STUDENTS_FILE = "students.json"
BUNDLED_VOICE_LINKS_FILE = "voice-links.json"
NAME_FORMULA_FILE = "student-name-formulas.json"
TYPE_FORMULA_FILE = "student-type-formulas.json"

# Keep this low, the wiki rate-limits aggressive clients
MAX_SYNC_CONCURRENCY = 8
DEFAULT_SYNC_CONCURRENCY = 3

MAX_SEARCH_RESULTS = 15


def _default_user_data_dir() -> Path:
    return Path.home() / ".bavoice"


@dataclass
class VoiceConfig:
    """Configuration for lookups, sync and download."""
    wiki_base_urls: List[str] = field(default_factory=lambda: ["https://bluearchive.wiki"])
    static_host: str = "static.wikitide.net"
    # The wiki files live under /bluearchivewiki/ on the shared static host; the mp3
    # transcodes sit under its transcoded/ tree, so the hash path is appended there.
    static_audio_root: str = "https://static.wikitide.net/bluearchivewiki/transcoded"
    user_agent: str = USER_AGENT
    timeout_s: float = 30.0
    max_retries: int = 3
    concurrency: int = DEFAULT_SYNC_CONCURRENCY
    fuzzy_score_cutoff: float = 60.0
    data_root: Path = PACKAGE_DATA_ROOT
    user_data_dir: Path = field(default_factory=_default_user_data_dir)

    def __post_init__(self):
        self.data_root = Path(self.data_root)
        self.user_data_dir = Path(self.user_data_dir).expanduser()
        self.wiki_base_urls = [u.rstrip("/") for u in self.wiki_base_urls if u and u.strip()]
        if not self.wiki_base_urls:
            raise ValueError("wiki_base_urls must name at least one wiki mirror")
        if self.timeout_s <= 0:
            raise ValueError(f"timeout_s must be positive, got {self.timeout_s}")
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {self.max_retries}")
        if not 0 <= self.fuzzy_score_cutoff <= 100:
            raise ValueError(f"fuzzy_score_cutoff must be within 0..100, got {self.fuzzy_score_cutoff}")
        self.concurrency = clamp_concurrency(self.concurrency)

    @property
    def bundled_students_path(self) -> Path:
        return self.data_root / BUNDLED_STUDENTS_FILE

    @property
    def bundled_voice_links_path(self) -> Path:
        return self.data_root / BUNDLED_VOICE_LINKS_FILE

    @property
    def student_cache_path(self) -> Path:
        return self.user_data_dir / STUDENT_MAP_CACHE_FILE

    @property
    def voice_cache_path(self) -> Path:
        return self.user_data_dir / VOICE_LINK_CACHE_FILE

    @property
    def name_formula_path(self) -> Path:
        return self.data_root / NAME_FORMULA_FILE

    @property
    def type_formula_path(self) -> Path:
        return self.data_root / TYPE_FORMULA_FILE


def clamp_concurrency(value) -> int:
    """Clamp a worker count into 1..MAX_SYNC_CONCURRENCY."""
    try:
        n = int(value)
    except (TypeError, ValueError):
        return DEFAULT_SYNC_CONCURRENCY
    return max(1, min(MAX_SYNC_CONCURRENCY, n))


def load_config(config_path: Optional[Path] = None) -> VoiceConfig:
    """Load configuration from a JSON file plus environment overrides.

    Without an explicit path, voice-config.json in the working directory is
    used if present. A missing file just means defaults.
    """
    _load_env_file()
    path = Path(config_path) if config_path else Path.cwd() / CONFIG_FILENAME

    data = {}
    if path.exists():
        with open(path, encoding="utf-8") as f:
            loaded = json.load(f)
        if not isinstance(loaded, dict):
            raise ValueError(f"{path}: expected a JSON object")
        known = {f.name for f in fields(VoiceConfig)}
        unknown = sorted(set(loaded) - known)
        if unknown:
            raise ValueError(f"{path}: unknown config keys {unknown}")
        data.update(loaded)
    elif config_path:
        raise FileNotFoundError(f"Config file does not exist: {path}")

    env_dir = os.environ.get("BAVOICE_USER_DATA_DIR")
    if env_dir:
        data["user_data_dir"] = env_dir
    env_concurrency = os.environ.get("BAVOICE_CONCURRENCY")
    if env_concurrency:
        data["concurrency"] = env_concurrency
    env_timeout = os.environ.get("BAVOICE_TIMEOUT")
    if env_timeout:
        data["timeout_s"] = float(env_timeout)

    return VoiceConfig(**data)
