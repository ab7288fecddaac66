"""Wiki page scraping: audio pages, file pages, site search and static URLs."""

import hashlib
import re
from typing import Iterable, List, Optional
from urllib.parse import parse_qs, quote, unquote, urlencode, urljoin, urlparse

from bs4 import BeautifulSoup

from bavoice.common.utils import normalize_whitespace, unique_preserve_order


AUDIO_EXTENSIONS = (".mp3", ".ogg", ".oga", ".opus", ".wav", ".m4a", ".flac")

_FILE_PREFIX_RE = re.compile(r"^File:", re.IGNORECASE)
_OGG_RE = re.compile(r"\.ogg($|[?#])", re.IGNORECASE)


def wiki_page_url(base_url: str, title: str) -> str:
    """https://bluearchive.wiki + "Hoshino/audio" -> https://bluearchive.wiki/wiki/Hoshino/audio"""
    path = normalize_whitespace(title).replace(" ", "_")
    return f"{base_url.rstrip('/')}/wiki/{quote(path, safe='/:()!,')}"


def wiki_search_url(base_url: str, query: str) -> str:
    """Full-text search results page (always a results list, never a redirect)."""
    params = {
        "search": query,
        "title": "Special:Search",
        "profile": "default",
        "fulltext": "1",
    }
    return f"{base_url.rstrip('/')}/w/index.php?{urlencode(params)}"


def parse_search_results(html: str) -> List[str]:
    """Page titles from a Special:Search results page, in result order."""
    soup = BeautifulSoup(html or "", "html.parser")
    titles: List[str] = []
    for heading in soup.select(".mw-search-result-heading"):
        a = heading.find("a")
        if a is None:
            continue
        title = normalize_whitespace(a.get("title") or a.get_text())
        if title:
            titles.append(title)
    if not titles:
        # Older skins only wrap results in ul.mw-search-results
        for a in soup.select("ul.mw-search-results li a[title]"):
            title = normalize_whitespace(a.get("title"))
            if title:
                titles.append(title)
    return unique_preserve_order(titles)


def pick_audio_title(titles: Iterable[str], fallback: str) -> str:
    """First title ending in /audio, else the first title, else the fallback."""
    titles = [t for t in titles if t]
    for title in titles:
        if title.lower().endswith("/audio"):
            return title
    if titles:
        return titles[0]
    return fallback


def _file_name_from_href(href: str) -> str:
    """Decoded file name for an .ogg link, or '' if the link does not name one."""
    parsed = urlparse(href)
    path = unquote(parsed.path)
    if "/wiki/File:" in path:
        name = path.split("/wiki/File:", 1)[1]
    else:
        title = parse_qs(parsed.query).get("title", [""])[0]
        name = title[len("File:"):] if title.startswith("File:") else path.rsplit("/", 1)[-1]
    name = name.strip()
    return name if name.lower().endswith(".ogg") else ""


def parse_file_identifiers(html: str) -> List[str]:
    """Collect File: identifiers from an audio page.

    Two sources, merged in document order per source: elements with a
    data-mwtitle attribute (the wiki's audio players) and links to .ogg
    files. Duplicates are dropped, first occurrence wins.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    found: List[str] = []

    for el in soup.find_all(attrs={"data-mwtitle": True}):
        name = normalize_whitespace(el.get("data-mwtitle"))
        if name:
            found.append(name if _FILE_PREFIX_RE.match(name) else f"File:{name}")

    for a in soup.find_all("a", href=True):
        href = a["href"]
        if not _OGG_RE.search(href):
            continue
        try:
            name = _file_name_from_href(href)
        except ValueError:
            # unparsable href, e.g. a broken IPv6 host
            continue
        if name:
            found.append(f"File:{name}")

    return unique_preserve_order(found)


def _host_matches(host: str, static_host: str) -> bool:
    host = (host or "").lower()
    static_host = static_host.lower()
    return host == static_host or host.endswith("." + static_host)


def is_download_link(url: str, static_host: str) -> bool:
    """Static-host URL with a download flag and an audio extension or transcoded path."""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not _host_matches(parsed.hostname or "", static_host):
        return False
    if "download" not in parsed.query.lower():
        return False
    path = parsed.path.lower()
    return path.endswith(AUDIO_EXTENSIONS) or "/transcoded/" in path


def parse_download_links(html: str, page_url: str, static_host: str) -> List[str]:
    """Direct download URLs on a File: page, relative ones resolved against page_url."""
    soup = BeautifulSoup(html or "", "html.parser")
    raw_urls: List[str] = []
    for el in soup.find_all(["source", "audio"]):
        if el.get("src"):
            raw_urls.append(el["src"])
    for a in soup.find_all("a", href=True):
        raw_urls.append(a["href"])

    links: List[str] = []
    for raw in raw_urls:
        try:
            url = urljoin(page_url, raw.strip())
            if is_download_link(url, static_host):
                links.append(url)
        except ValueError:
            continue
    return unique_preserve_order(links)


def link_score(url: str, static_host: str) -> int:
    parsed = urlparse(url)
    path = parsed.path.lower()
    score = 0
    if _host_matches(parsed.hostname or "", static_host):
        score += 100
    if "/transcoded/" in path:
        score += 80
    if path.endswith(".mp3"):
        score += 60
    if "download" in parsed.query.lower():
        score += 30
    if path.endswith(".ogg"):
        score += 20
    return score


def rank_links(urls: Iterable[str], static_host: str) -> List[str]:
    """Best candidate first; equal scores keep their original order."""
    unique = unique_preserve_order(u for u in urls if u)
    return sorted(unique, key=lambda u: -link_score(u, static_host))


def strip_file_prefix(file_identifier: str) -> str:
    return normalize_whitespace(_FILE_PREFIX_RE.sub("", file_identifier or ""))


def build_static_audio_url(file_identifier: str, static_audio_root: str) -> Optional[str]:
    """Guess the transcoded mp3 URL from the file name alone.

    The wiki stores files under <md5[0]>/<md5[:2]>/ of the underscored file
    name, so the URL can be built without fetching anything.
    """
    name = strip_file_prefix(file_identifier).replace(" ", "_")
    if not name:
        return None
    digest = hashlib.md5(name.encode("utf-8")).hexdigest()
    encoded = quote(name)
    return f"{static_audio_root.rstrip('/')}/{digest[0]}/{digest[:2]}/{encoded}/{encoded}.mp3?download"


__all__ = [
    "wiki_page_url",
    "wiki_search_url",
    "parse_search_results",
    "pick_audio_title",
    "parse_file_identifiers",
    "is_download_link",
    "parse_download_links",
    "link_score",
    "rank_links",
    "strip_file_prefix",
    "build_static_audio_url",
]
