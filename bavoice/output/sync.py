"""Batch sync: resolve every registry entry and rebuild the link cache.

A small pool of asyncio workers shares one cursor over the student list.
The blocking requests-based pipeline runs in asyncio.to_thread, so the
only suspension points are the network fetches. The cache file is
written once, at the end, by atomic replace; a crash mid-run leaves the
previous file untouched.
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from bavoice.common.cache import read_envelope, write_envelope
from bavoice.common.config import DEFAULT_SYNC_CONCURRENCY, clamp_concurrency
from bavoice.common.logging import clear_worker_log_context, set_worker_log_context
from bavoice.common.utils import normalize_whitespace
from bavoice.schema.audio import ProgressCallback, ProgressEvent, ResolveResult, SyncSummary, read_link_entry
from bavoice.schema.student import StudentRecord
from bavoice.output.context import VoiceContext
from bavoice.output.pipeline import resolve_audio_for_student


LOG_PREFIX = "sync"


@dataclass
class SyncOptions:
    concurrency: int = DEFAULT_SYNC_CONCURRENCY
    force_refresh: bool = False
    query: Optional[str] = None  # substring over the name fields
    link: Optional[str] = None  # exact href / cache key
    output_path: Optional[Path] = None  # default: the writable link cache
    on_progress: Optional[ProgressCallback] = None

    @property
    def is_filtered(self) -> bool:
        return bool(normalize_whitespace(self.query) or normalize_whitespace(self.link))


def matches_filter(student: StudentRecord, query: Optional[str] = None, link: Optional[str] = None) -> bool:
    """True if the student passes both the substring and the exact-link filter."""
    link = normalize_whitespace(link)
    if link and link not in (student.href, student.cache_key):
        return False
    query = normalize_whitespace(query).lower()
    if query:
        haystack = " ".join(
            v for v in (student.search_text, student.english_name, student.korean_name, student.href) if v
        ).lower()
        if query not in haystack:
            return False
    return True


class _SyncRun:
    """Mutable state of one sync run. Only touched from the event loop thread."""

    def __init__(self, ctx: VoiceContext, options: SyncOptions, students: List[StudentRecord], existing: Dict[str, Any]):
        self.ctx = ctx
        self.options = options
        self.students = students
        self.existing = existing
        self.out: Dict[str, Any] = dict(existing) if options.is_filtered else {}
        self.summary = SyncSummary(total=len(students))
        self.cursor = 0
        self.completed = 0

    def prior_entry(self, key: str) -> Optional[Any]:
        raw = self.existing.get(key)
        if read_link_entry(raw) is not None:
            return raw
        return self.ctx.link_cache.raw_entry(key)

    def next_student(self) -> Optional[StudentRecord]:
        if self.cursor >= len(self.students):
            return None
        student = self.students[self.cursor]
        self.cursor += 1
        return student

    def report(self, student: StudentRecord, ok: bool, reason: str = "") -> None:
        self.completed += 1
        if self.options.on_progress is not None:
            self.options.on_progress(ProgressEvent(
                completed=self.completed,
                total=self.summary.total,
                current_item=student.display_name,
                ok=ok,
                reason=reason,
            ))

    async def sync_one(self, student: StudentRecord) -> None:
        key = student.cache_key
        name = student.display_name

        if not self.options.force_refresh:
            prior = self.prior_entry(key)
            if prior is not None:
                self.out[key] = prior
                self.summary.skipped_count += 1
                print(f"[{LOG_PREFIX}] [skip] {name} (cached)")
                self.report(student, True, "cached")
                return

        try:
            result = await asyncio.to_thread(resolve_audio_for_student, self.ctx, student, False, False)
        except Exception as e:
            result = ResolveResult.unresolved(f"{e.__class__.__name__}: {e}", student)

        if result.ok:
            self.out[key] = result.to_resolution().to_json()
            self.summary.success_count += 1
            print(f"[{LOG_PREFIX}] [ok] {name} -> {len(result.file_identifiers)} files")
            self.report(student, True)
            return

        prior = self.prior_entry(key)
        if prior is not None:
            # Keep the last good entry rather than dropping the student
            self.out[key] = prior
        self.summary.fail_count += 1
        print(f"[{LOG_PREFIX}] [fail] {name}: {result.reason}")
        self.report(student, False, result.reason)

    async def worker(self, idx: int) -> None:
        while True:
            student = self.next_student()
            if student is None:
                clear_worker_log_context()
                return
            set_worker_log_context(idx, student.display_name)
            await self.sync_one(student)


async def sync_all_voice_links_async(ctx: VoiceContext, options: Optional[SyncOptions] = None) -> SyncSummary:
    options = options or SyncOptions()
    output_path = Path(options.output_path) if options.output_path else ctx.config.voice_cache_path
    students = [s for s in ctx.registry.students if matches_filter(s, options.query, options.link)]
    existing = read_envelope(output_path, dict, verbose=ctx.verbose, log_prefix=LOG_PREFIX)["students"]

    run = _SyncRun(ctx, options, students, existing)
    workers = min(clamp_concurrency(options.concurrency), max(1, len(students)))
    if ctx.verbose:
        print(f"[{LOG_PREFIX}] [info] {len(students)} students, {workers} workers, force={options.force_refresh}")
    await asyncio.gather(*(run.worker(i) for i in range(workers)))

    write_envelope(output_path, run.out, verbose=ctx.verbose, log_prefix=LOG_PREFIX)
    if output_path == ctx.config.voice_cache_path:
        ctx.link_cache.invalidate()

    summary = run.summary
    summary.output_path = output_path
    print(
        f"[{LOG_PREFIX}] [done] Saved voice links to {output_path} "
        f"(success={summary.success_count}, fail={summary.fail_count}, "
        f"skipped={summary.skipped_count}, total={summary.total})"
    )
    return summary


def sync_all_voice_links(ctx: VoiceContext, options: Optional[SyncOptions] = None) -> SyncSummary:
    """Blocking entry point for scripts and the CLI."""
    return asyncio.run(sync_all_voice_links_async(ctx, options))


__all__ = [
    "SyncOptions",
    "matches_filter",
    "sync_all_voice_links_async",
    "sync_all_voice_links",
]
