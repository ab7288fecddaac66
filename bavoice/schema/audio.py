"""Result types for audio resolution, batch sync and download."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from bavoice.schema.student import StudentRecord


@dataclass
class AudioResolution:
    """Where one student's voice lines live on the wiki."""
    audio_page_title: str
    file_identifiers: List[str] = field(default_factory=list)
    download_links_by_file: Dict[str, List[str]] = field(default_factory=dict)
    from_cache: bool = False

    @property
    def is_resolved(self) -> bool:
        return bool(self.audio_page_title) and bool(self.file_identifiers)

    def to_json(self) -> Dict[str, Any]:
        return {
            "audioPageTitle": self.audio_page_title,
            "fileIdentifiers": list(self.file_identifiers),
            "downloadLinksByFile": {k: list(v) for k, v in self.download_links_by_file.items()},
        }


def read_link_entry(raw: Any) -> Optional[AudioResolution]:
    """Parse one link-cache entry; None if it is unusable.

    Accepts the current shape ({audioPageTitle, fileIdentifiers,
    downloadLinksByFile}) and the older one ({audioTitle, fileTitles,
    files: [{fileTitle, links}], links: [{fileTitle, url}]}).
    """
    if not isinstance(raw, dict):
        return None
    title = raw.get("audioPageTitle") or raw.get("audioTitle")
    identifiers = raw.get("fileIdentifiers")
    if identifiers is None:
        identifiers = raw.get("fileTitles")
    if not isinstance(title, str) or not title.strip() or not isinstance(identifiers, list):
        return None
    ordered: List[str] = []
    for ident in identifiers:
        if isinstance(ident, str) and ident and ident not in ordered:
            ordered.append(ident)
    if not ordered:
        return None

    links: Dict[str, List[str]] = {}

    def _add(ident: Any, url: Any) -> None:
        if not isinstance(ident, str) or not isinstance(url, str) or not url:
            return
        bucket = links.setdefault(ident, [])
        if url not in bucket:
            bucket.append(url)

    by_file = raw.get("downloadLinksByFile")
    if isinstance(by_file, dict):
        for ident, urls in by_file.items():
            if isinstance(urls, list):
                for url in urls:
                    _add(ident, url)
    for entry in raw.get("files") or []:
        if isinstance(entry, dict) and isinstance(entry.get("links"), list):
            for url in entry["links"]:
                _add(entry.get("fileTitle"), url)
    for entry in raw.get("links") or []:
        if isinstance(entry, dict):
            _add(entry.get("fileTitle"), entry.get("url"))

    return AudioResolution(
        audio_page_title=title.strip(),
        file_identifiers=ordered,
        download_links_by_file=links,
        from_cache=True,
    )


@dataclass
class ResolveResult:
    """Outcome of an interactive lookup. ok=False always carries a reason."""
    ok: bool
    student: Optional[StudentRecord] = None
    audio_page_title: str = ""
    file_identifiers: List[str] = field(default_factory=list)
    download_links_by_file: Dict[str, List[str]] = field(default_factory=dict)
    from_cache: bool = False
    reason: str = ""

    @classmethod
    def resolved(cls, student: StudentRecord, resolution: AudioResolution) -> "ResolveResult":
        return cls(
            ok=True,
            student=student,
            audio_page_title=resolution.audio_page_title,
            file_identifiers=list(resolution.file_identifiers),
            download_links_by_file=dict(resolution.download_links_by_file),
            from_cache=resolution.from_cache,
        )

    @classmethod
    def unresolved(cls, reason: str, student: Optional[StudentRecord] = None) -> "ResolveResult":
        return cls(ok=False, student=student, reason=reason)

    def to_resolution(self) -> AudioResolution:
        return AudioResolution(
            audio_page_title=self.audio_page_title,
            file_identifiers=list(self.file_identifiers),
            download_links_by_file=dict(self.download_links_by_file),
            from_cache=self.from_cache,
        )


@dataclass(frozen=True)
class ProgressEvent:
    """One step of a batch sync or a download."""
    completed: int
    total: int
    current_item: str
    ok: bool
    reason: str = ""


ProgressCallback = Callable[[ProgressEvent], None]


@dataclass
class SyncSummary:
    success_count: int = 0
    fail_count: int = 0
    skipped_count: int = 0
    total: int = 0
    output_path: Optional[Path] = None


@dataclass
class DownloadResult:
    file_identifier: str
    ok: bool
    path: Optional[Path] = None
    url: str = ""
    reason: str = ""


@dataclass
class DownloadSummary:
    ok: bool
    success_count: int
    total_count: int
    results: List[DownloadResult] = field(default_factory=list)
    folder: Optional[Path] = None
    message: str = ""


__all__ = [
    "AudioResolution",
    "read_link_entry",
    "ResolveResult",
    "ProgressEvent",
    "ProgressCallback",
    "SyncSummary",
    "DownloadResult",
    "DownloadSummary",
]
