"""Wiki side: scraping, link cache, resolution pipeline, batch sync and download."""

from bavoice.output.context import VoiceContext
from bavoice.output.link_cache import LinkCache
from bavoice.output.pipeline import (
    search_students,
    resolve_voices_for_student,
    resolve_audio_for_student,
)
from bavoice.output.sync import (
    SyncOptions,
    sync_all_voice_links,
    sync_all_voice_links_async,
)
from bavoice.output.download import download_voice_files

__all__ = [
    "VoiceContext",
    "LinkCache",
    # pipeline
    "search_students",
    "resolve_voices_for_student",
    "resolve_audio_for_student",
    # sync
    "SyncOptions",
    "sync_all_voice_links",
    "sync_all_voice_links_async",
    # download
    "download_voice_files",
]
