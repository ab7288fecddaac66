import json

from bavoice.common.config import MAX_SYNC_CONCURRENCY, clamp_concurrency
from bavoice.output.sync import SyncOptions, matches_filter, sync_all_voice_links
from bavoice.output.wiki import wiki_page_url

from conftest import BASE_URL, FakeHttp, audio_page_html


STUDENTS = [
    {"href": "/x", "englishName": "hoshino", "koreanName": "호시노"},
    {"href": "/y", "englishName": "aru", "koreanName": "아루"},
    {"href": "/z", "englishName": "serika", "koreanName": "세리카"},
]


def _entry(title):
    return {"audioPageTitle": title, "fileIdentifiers": [f"File:{title.split('/')[0]}_Title.ogg"]}


def _wiki(*names):
    # File pages are left out; every file then carries only the hash fallback.
    return FakeHttp({
        wiki_page_url(BASE_URL, f"{n}/audio"): audio_page_html(f"{n.title()}_Title.ogg") for n in names
    })


def _saved(path):
    return json.loads(path.read_text(encoding="utf-8"))


def test_fully_cached_sync_makes_no_requests(make_ctx, config):
    http = FakeHttp()
    cached = {"/x": _entry("Hoshino/audio"), "/y": _entry("Aru/audio"), "/z": _entry("Serika/audio")}
    ctx = make_ctx(STUDENTS, http=http, writable_links=cached)

    summary = sync_all_voice_links(ctx, SyncOptions(concurrency=3))

    assert http.calls == []
    assert summary.skipped_count == 3
    assert summary.success_count == 0 and summary.fail_count == 0
    assert _saved(config.voice_cache_path)["students"] == cached


def test_bundled_entries_count_as_cached(make_ctx, config):
    http = FakeHttp()
    bundled = {"/x": _entry("Hoshino/audio"), "/y": _entry("Aru/audio"), "/z": _entry("Serika/audio")}
    ctx = make_ctx(STUDENTS, http=http, bundled_links=bundled)

    summary = sync_all_voice_links(ctx)

    assert http.calls == []
    assert summary.skipped_count == 3
    assert set(_saved(config.voice_cache_path)["students"]) == {"/x", "/y", "/z"}


def test_failures_do_not_stop_other_students(make_ctx, config):
    ctx = make_ctx(STUDENTS, http=_wiki("hoshino", "aru"))

    summary = sync_all_voice_links(ctx, SyncOptions(concurrency=2))

    assert summary.success_count == 2
    assert summary.fail_count == 1
    assert summary.total == 3
    students = _saved(config.voice_cache_path)["students"]
    assert set(students) == {"/x", "/y"}
    assert students["/x"]["audioPageTitle"] == "hoshino/audio"
    assert students["/x"]["fileIdentifiers"] == ["File:Hoshino_Title.ogg"]
    assert len(students["/x"]["downloadLinksByFile"]["File:Hoshino_Title.ogg"]) == 1


def test_force_refresh_replaces_entries_and_keeps_prior_on_failure(make_ctx, config):
    cached = {"/x": _entry("Old/audio"), "/z": _entry("Serika/audio")}
    ctx = make_ctx(STUDENTS, http=_wiki("hoshino", "aru"), writable_links=cached)

    summary = sync_all_voice_links(ctx, SyncOptions(force_refresh=True))

    assert summary.skipped_count == 0
    assert summary.success_count == 2
    assert summary.fail_count == 1
    students = _saved(config.voice_cache_path)["students"]
    assert students["/x"]["audioPageTitle"] == "hoshino/audio"
    assert students["/z"] == cached["/z"]


def test_link_filter_only_touches_one_student(make_ctx, config):
    http = _wiki("hoshino", "aru", "serika")
    cached = {"/y": _entry("Aru/audio")}
    ctx = make_ctx(STUDENTS, http=http, writable_links=cached)

    summary = sync_all_voice_links(ctx, SyncOptions(link="/x"))

    assert summary.total == 1
    assert summary.success_count == 1
    assert all("hoshino" in c.lower() for c in http.calls)
    students = _saved(config.voice_cache_path)["students"]
    assert set(students) == {"/x", "/y"}
    assert students["/y"] == cached["/y"]


def test_query_filter_matches_korean_names(make_ctx):
    ctx = make_ctx(STUDENTS, http=_wiki("hoshino", "aru", "serika"))
    summary = sync_all_voice_links(ctx, SyncOptions(query="세리"))
    assert summary.total == 1
    assert summary.success_count == 1


def test_matches_filter(make_ctx):
    ctx = make_ctx(STUDENTS)
    hoshino = ctx.registry.get("/x")
    assert matches_filter(hoshino)
    assert matches_filter(hoshino, query="HOSHI")
    assert matches_filter(hoshino, query="호시")
    assert not matches_filter(hoshino, query="aru")
    assert matches_filter(hoshino, link="/x")
    assert not matches_filter(hoshino, link="/y")
    assert not matches_filter(hoshino, query="hoshino", link="/y")


def test_progress_events_count_up(make_ctx):
    events = []
    ctx = make_ctx(STUDENTS, http=_wiki("hoshino"), writable_links={"/y": _entry("Aru/audio")})

    sync_all_voice_links(ctx, SyncOptions(concurrency=3, on_progress=events.append))

    assert [e.completed for e in events] == [1, 2, 3]
    assert all(e.total == 3 for e in events)
    by_item = {e.current_item: e for e in events}
    assert by_item["hoshino"].ok
    assert by_item["aru"].ok and by_item["aru"].reason == "cached"
    assert not by_item["serika"].ok and by_item["serika"].reason


def test_custom_output_path_written_atomically(make_ctx, config, tmp_path):
    out = tmp_path / "out" / "voice-links.json"
    ctx = make_ctx(STUDENTS, http=_wiki("hoshino", "aru", "serika"))

    summary = sync_all_voice_links(ctx, SyncOptions(output_path=out))

    assert summary.output_path == out
    assert set(_saved(out)["students"]) == {"/x", "/y", "/z"}
    assert _saved(out)["updatedAt"] > 0
    assert [p.name for p in out.parent.iterdir()] == ["voice-links.json"]
    assert not config.voice_cache_path.exists()


def test_sync_refreshes_link_cache_reads(make_ctx):
    ctx = make_ctx(STUDENTS, http=_wiki("hoshino", "aru", "serika"))
    assert ctx.link_cache.get("/x") is None
    sync_all_voice_links(ctx)
    assert ctx.link_cache.get("/x").audio_page_title == "hoshino/audio"


def test_empty_registry_still_writes_output(make_ctx, config):
    ctx = make_ctx([])
    summary = sync_all_voice_links(ctx)
    assert summary.total == 0
    assert _saved(config.voice_cache_path)["students"] == {}


def test_clamp_concurrency():
    assert clamp_concurrency(0) == 1
    assert clamp_concurrency(-4) == 1
    assert clamp_concurrency(100) == MAX_SYNC_CONCURRENCY
    assert clamp_concurrency("2") == 2
    assert clamp_concurrency(None) == 3


def test_per_student_lines_printed_without_verbose(make_ctx, capsys):
    ctx = make_ctx(STUDENTS, http=_wiki("hoshino"), writable_links={"/y": _entry("Aru/audio")})
    assert not ctx.verbose

    sync_all_voice_links(ctx)

    out = capsys.readouterr().out
    assert "[sync] [ok] hoshino -> 1 files" in out
    assert "[sync] [skip] aru (cached)" in out
    assert "[sync] [fail] serika: No audio page found for serika" in out
    assert "[sync] [done]" in out
