"""Public lookup operations: search, resolve audio pages, collect download links."""

from typing import Dict, List, Optional, Sequence

from bavoice.common.errors import NetworkFailure
from bavoice.input.resolver import rank
from bavoice.schema.audio import AudioResolution, ResolveResult
from bavoice.schema.student import StudentRecord
from bavoice.output.context import VoiceContext
from bavoice.output.strategies import (
    RESOLUTION_STRATEGIES,
    ResolutionStrategy,
    StrategyOutcome,
    plan_attempts,
)
from bavoice.output.wiki import (
    build_static_audio_url,
    parse_download_links,
    rank_links,
    wiki_page_url,
)


def search_students(ctx: VoiceContext, query: Optional[str]) -> List[StudentRecord]:
    """Up to 15 students, best match first."""
    return rank(ctx.registry.students, query, fuzzy_cutoff=ctx.config.fuzzy_score_cutoff)


def find_audio_page(
    ctx: VoiceContext,
    student: StudentRecord,
    strategies: Sequence[ResolutionStrategy] = RESOLUTION_STRATEGIES,
) -> StrategyOutcome:
    """Walk the strategy plan and return the first successful outcome."""
    reasons: List[str] = []
    for strategy, base_url in plan_attempts(strategies, ctx.config.wiki_base_urls):
        outcome = strategy.attempt(ctx, student, base_url)
        if outcome.ok:
            return outcome
        where = f" @ {base_url}" if base_url else ""
        reasons.append(f"{strategy.name}{where}: {outcome.reason}")
    reason = "No audio page found for " + student.display_name
    if reasons:
        reason += " (" + "; ".join(reasons) + ")"
    return StrategyOutcome(ok=False, reason=reason)


def links_for_file(ctx: VoiceContext, file_identifier: str, base_url: str) -> List[str]:
    """Scraped download links for one file (ranked), then the hash-derived fallback.

    A failing file page leaves only the fallback.
    """
    static_host = ctx.config.static_host
    scraped: List[str] = []
    url = wiki_page_url(base_url, file_identifier)
    try:
        html = ctx.http.get_text(url)
        scraped = rank_links(parse_download_links(html, url, static_host), static_host)
    except (NetworkFailure, ValueError) as e:
        if ctx.verbose:
            print(f"[links] [warn] {file_identifier}: {e}")
    fallback = build_static_audio_url(file_identifier, ctx.config.static_audio_root)
    if fallback and fallback not in scraped:
        scraped.append(fallback)
    return scraped


def collect_download_links(ctx: VoiceContext, file_identifiers: Sequence[str], base_url: str) -> Dict[str, List[str]]:
    links: Dict[str, List[str]] = {}
    for ident in file_identifiers:
        links[ident] = links_for_file(ctx, ident, base_url)
    if ctx.verbose:
        scraped = sum(1 for v in links.values() if len(v) > 1)
        print(f"[links] [ok] {len(links)} files, {scraped} with scraped links")
    return links


def _fill_missing_links(ctx: VoiceContext, resolution: AudioResolution) -> AudioResolution:
    """Give cached files without any link at least the hash-derived fallback."""
    for ident in resolution.file_identifiers:
        if not resolution.download_links_by_file.get(ident):
            fallback = build_static_audio_url(ident, ctx.config.static_audio_root)
            if fallback:
                resolution.download_links_by_file[ident] = [fallback]
    return resolution


def resolve_audio_for_student(
    ctx: VoiceContext,
    student: StudentRecord,
    use_cache: bool = True,
    persist: bool = True,
) -> ResolveResult:
    """Resolve one student's audio page, file identifiers and download links.

    Steps run strictly in order: link cache, then per mirror the direct
    page and the site search, then one file page per identifier.
    Network resolutions are saved to the writable link cache when persist
    is set and no entry exists yet.
    """
    strategies = [s for s in RESOLUTION_STRATEGIES if use_cache or s.per_mirror]
    outcome = find_audio_page(ctx, student, strategies)
    if not outcome.ok:
        return ResolveResult.unresolved(outcome.reason, student)

    if outcome.cached is not None:
        return ResolveResult.resolved(student, _fill_missing_links(ctx, outcome.cached))

    resolution = AudioResolution(
        audio_page_title=outcome.audio_page_title,
        file_identifiers=list(outcome.file_identifiers),
        download_links_by_file=collect_download_links(ctx, outcome.file_identifiers, outcome.base_url),
    )
    if persist and ctx.link_cache.put(student.cache_key, resolution):
        try:
            ctx.link_cache.save()
        except OSError as e:
            if ctx.verbose:
                print(f"[link-cache] [warn] could not save: {e}")
    return ResolveResult.resolved(student, resolution)


def resolve_voices_for_student(ctx: VoiceContext, query: Optional[str]) -> ResolveResult:
    """Pick the best-matching student for a typed name and resolve its voices.

    Never raises; failures come back as ok=False with a reason.
    """
    try:
        matches = search_students(ctx, query)
        if not matches:
            return ResolveResult.unresolved(f'No student matched "{query or ""}". Try a different name.')
        return resolve_audio_for_student(ctx, matches[0])
    except Exception as e:
        if ctx.verbose:
            print(f"[resolve] [error] {query}: {e}")
        return ResolveResult.unresolved(f"Lookup failed: {e}")


__all__ = [
    "search_students",
    "find_audio_page",
    "links_for_file",
    "collect_download_links",
    "resolve_audio_for_student",
    "resolve_voices_for_student",
]
