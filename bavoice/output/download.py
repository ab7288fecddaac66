"""Download resolved voice files into a per-student folder."""

import re
from pathlib import Path
from typing import Dict, List, Optional, Sequence
from urllib.parse import unquote

from bavoice.common.errors import NetworkFailure
from bavoice.common.utils import ensure_dir, sanitize_filename, unique_preserve_order
from bavoice.schema.audio import DownloadResult, DownloadSummary, ProgressCallback, ProgressEvent
from bavoice.output.context import VoiceContext
from bavoice.output.wiki import build_static_audio_url, strip_file_prefix


_TRANSCODED_MP3_RE = re.compile(r"\.ogg\.mp3(\?|$)", re.IGNORECASE)


def local_file_name(file_identifier: str, url: str = "") -> str:
    """File name to save as; transcoded .ogg.mp3 downloads are saved as .mp3."""
    name = sanitize_filename(unquote(strip_file_prefix(file_identifier)) or "unknown")
    if url and _TRANSCODED_MP3_RE.search(url):
        name = re.sub(r"\.ogg$", ".mp3", name, flags=re.IGNORECASE)
    return name


def download_voice_files(
    ctx: VoiceContext,
    student_name: str,
    file_identifiers: Sequence[str],
    target_dir: Path,
    links_by_file: Optional[Dict[str, List[str]]] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> DownloadSummary:
    """Download every file, trying its links in order and the hash fallback last.

    Files land in <target_dir>/<student_name>/. A file that fails on every
    candidate is reported and skipped; the others still download.
    """
    if not file_identifiers:
        return DownloadSummary(ok=False, success_count=0, total_count=0, message="No files to download.")

    folder = Path(target_dir) / sanitize_filename(student_name)
    ensure_dir(folder)
    links_by_file = links_by_file or {}
    results: List[DownloadResult] = []

    for idx, ident in enumerate(file_identifiers, start=1):
        candidates = [u for u in links_by_file.get(ident) or [] if u]
        fallback = build_static_audio_url(ident, ctx.config.static_audio_root)
        if fallback:
            candidates.append(fallback)
        candidates = unique_preserve_order(candidates)

        result = DownloadResult(file_identifier=ident, ok=False, reason="no candidate URL")
        for url in candidates:
            try:
                data = ctx.http.get_bytes(url)
            except NetworkFailure as e:
                result.reason = str(e)
                continue
            path = folder / local_file_name(ident, url)
            try:
                path.write_bytes(data)
            except OSError as e:
                result.reason = f"could not write {path.name}: {e}"
                continue
            result = DownloadResult(file_identifier=ident, ok=True, path=path, url=url)
            if ctx.verbose:
                print(f"[download] [file] {path.name} ({len(data)} bytes)")
            break
        if not result.ok and ctx.verbose:
            print(f"[download] [fail] {ident}: {result.reason}")

        results.append(result)
        if on_progress is not None:
            on_progress(ProgressEvent(
                completed=idx,
                total=len(file_identifiers),
                current_item=ident,
                ok=result.ok,
                reason=result.reason,
            ))

    success = sum(1 for r in results if r.ok)
    verb = "downloaded" if success else "failed"
    return DownloadSummary(
        ok=success > 0,
        success_count=success,
        total_count=len(results),
        results=results,
        folder=folder,
        message=f"{success}/{len(results)} files {verb} ({folder})",
    )


__all__ = [
    "local_file_name",
    "download_voice_files",
]
