"""Ordered strategies for finding a student's audio page.

Each strategy returns a StrategyOutcome instead of raising; the pipeline
walks plan_attempts() and stops at the first success.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from bavoice.common.errors import NetworkFailure, ScrapeMismatch
from bavoice.common.utils import title_case, unique_preserve_order
from bavoice.schema.audio import AudioResolution
from bavoice.schema.student import StudentRecord
from bavoice.output.wiki import (
    parse_file_identifiers,
    parse_search_results,
    pick_audio_title,
    wiki_page_url,
    wiki_search_url,
)


@dataclass
class StrategyOutcome:
    ok: bool
    audio_page_title: str = ""
    file_identifiers: List[str] = field(default_factory=list)
    reason: str = ""
    base_url: Optional[str] = None
    cached: Optional[AudioResolution] = None

    @property
    def from_cache(self) -> bool:
        return self.cached is not None


def audio_title_candidates(student: StudentRecord) -> List[str]:
    """Audio page titles to try directly: as stored, then title-cased."""
    name = student.wiki_search_name or student.display_name
    return unique_preserve_order([f"{name}/audio", f"{title_case(name)}/audio"])


def fallback_audio_title(student: StudentRecord) -> str:
    return f"{title_case(student.wiki_search_name or student.display_name)}/audio"


def scrape_audio_page(ctx, base_url: str, title: str) -> List[str]:
    """Fetch an audio page and return its file identifiers (raises if there are none)."""
    url = wiki_page_url(base_url, title)
    html = ctx.http.get_text(url)
    identifiers = parse_file_identifiers(html)
    if not identifiers:
        raise ScrapeMismatch(f"no audio files found on {title}")
    if ctx.verbose:
        print(f"[audio] [fetch] {title}: {len(identifiers)} files")
    return identifiers


class ResolutionStrategy:
    name = "strategy"
    per_mirror = True

    def attempt(self, ctx, student: StudentRecord, base_url: Optional[str]) -> StrategyOutcome:
        """Run the strategy; network, scrape and URL parse errors become a failed outcome."""
        try:
            return self.run(ctx, student, base_url)
        except (NetworkFailure, ScrapeMismatch, ValueError) as e:
            if ctx.verbose:
                print(f"[audio] [{self.name}] {student.display_name}: {e}")
            return StrategyOutcome(ok=False, reason=str(e), base_url=base_url)

    def run(self, ctx, student: StudentRecord, base_url: Optional[str]) -> StrategyOutcome:
        raise NotImplementedError


class LinkCacheStrategy(ResolutionStrategy):
    """Writable link cache, then the bundled one. No network."""
    name = "link-cache"
    per_mirror = False

    def run(self, ctx, student, base_url):
        cached = ctx.link_cache.get(student.cache_key)
        if cached is None:
            return StrategyOutcome(ok=False, reason="not in link cache")
        return StrategyOutcome(
            ok=True,
            audio_page_title=cached.audio_page_title,
            file_identifiers=list(cached.file_identifiers),
            cached=cached,
        )


class DirectPageStrategy(ResolutionStrategy):
    """Fetch <name>/audio directly."""
    name = "direct-page"

    def run(self, ctx, student, base_url):
        last_error: Optional[Exception] = None
        for title in audio_title_candidates(student):
            try:
                identifiers = scrape_audio_page(ctx, base_url, title)
            except (NetworkFailure, ScrapeMismatch, ValueError) as e:
                last_error = e
                continue
            return StrategyOutcome(ok=True, audio_page_title=title, file_identifiers=identifiers, base_url=base_url)
        raise last_error or ScrapeMismatch("no audio page found")


class SearchStrategy(ResolutionStrategy):
    """Site search for <name>/audio and scrape the best hit."""
    name = "search"

    def run(self, ctx, student, base_url):
        name = student.wiki_search_name or student.display_name
        html = ctx.http.get_text(wiki_search_url(base_url, f"{name}/audio"))
        title = pick_audio_title(parse_search_results(html), fallback_audio_title(student))
        identifiers = scrape_audio_page(ctx, base_url, title)
        return StrategyOutcome(ok=True, audio_page_title=title, file_identifiers=identifiers, base_url=base_url)


RESOLUTION_STRATEGIES: Tuple[ResolutionStrategy, ...] = (
    LinkCacheStrategy(),
    DirectPageStrategy(),
    SearchStrategy(),
)


def plan_attempts(
    strategies: Sequence[ResolutionStrategy],
    base_urls: Sequence[str],
) -> List[Tuple[ResolutionStrategy, Optional[str]]]:
    """Non-network strategies once, then each mirror's network strategies in order."""
    plan: List[Tuple[ResolutionStrategy, Optional[str]]] = [(s, None) for s in strategies if not s.per_mirror]
    for base_url in base_urls:
        plan.extend((s, base_url) for s in strategies if s.per_mirror)
    return plan


__all__ = [
    "StrategyOutcome",
    "ResolutionStrategy",
    "LinkCacheStrategy",
    "DirectPageStrategy",
    "SearchStrategy",
    "RESOLUTION_STRATEGIES",
    "plan_attempts",
    "audio_title_candidates",
    "fallback_audio_title",
]
