import json
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Add the parent directory to path to import bavoice
sys.path.insert(0, str(Path(__file__).parent.parent))

from bavoice.common.config import VoiceConfig
from bavoice.common.errors import NetworkFailure
from bavoice.input.registry import StudentRegistry, normalize_students
from bavoice.output.context import VoiceContext
from bavoice.output.link_cache import LinkCache


BASE_URL = "https://bluearchive.wiki"


class FakeHttp:
    """Serves canned pages by exact URL and records every request."""

    def __init__(self, pages: Optional[Dict[str, str]] = None, binaries: Optional[Dict[str, bytes]] = None):
        self.pages = dict(pages or {})
        self.binaries = dict(binaries or {})
        self.calls: List[str] = []

    def get_text(self, url: str) -> str:
        self.calls.append(url)
        if url in self.pages:
            return self.pages[url]
        raise NetworkFailure(url, "status 404", 404)

    def get_bytes(self, url: str) -> bytes:
        self.calls.append(url)
        if url in self.binaries:
            return self.binaries[url]
        raise NetworkFailure(url, "status 404", 404)


def write_json(path: Path, payload) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def config(tmp_path: Path) -> VoiceConfig:
    return VoiceConfig(data_root=tmp_path / "data", user_data_dir=tmp_path / "user")


@pytest.fixture
def make_ctx(config: VoiceConfig):
    def _make(
        students: List[dict],
        http: Optional[FakeHttp] = None,
        writable_links: Optional[dict] = None,
        bundled_links: Optional[dict] = None,
    ) -> VoiceContext:
        if writable_links is not None:
            write_json(config.voice_cache_path, {"updatedAt": 1, "students": writable_links})
        if bundled_links is not None:
            write_json(config.bundled_voice_links_path, {"updatedAt": 1, "students": bundled_links})
        return VoiceContext(
            config=config,
            registry=StudentRegistry(normalize_students(students, config.data_root)),
            http=http or FakeHttp(),
            link_cache=LinkCache.from_config(config),
        )
    return _make


def audio_page_html(*file_names: str) -> str:
    """Audio page in the wiki's markup: one player plus a file link per line."""
    rows = []
    for name in file_names:
        rows.append(
            f'<tr><td><audio data-mwtitle="{name}" controls>'
            f'<source src="//static.wikitide.net/bluearchivewiki/a/ab/{name}" type="audio/ogg"></audio></td>'
            f'<td><a href="/wiki/File:{name}" title="File:{name}">{name}</a></td></tr>'
        )
    return "<html><body><table>" + "".join(rows) + "</table></body></html>"


def file_page_html(*hrefs: str) -> str:
    links = "".join(f'<a href="{h}">Download</a>' for h in hrefs)
    return f"<html><body><div class='fullMedia'>{links}</div></body></html>"
