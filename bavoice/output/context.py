"""The explicit context threaded through every public operation."""

from dataclasses import dataclass
from typing import Any, Optional

from bavoice.common.config import VoiceConfig, load_config
from bavoice.common.http import HttpClient
from bavoice.input.registry import StudentRegistry
from bavoice.output.link_cache import LinkCache


@dataclass
class VoiceContext:
    """Registry, HTTP client and caches for one process.

    `http` only needs get_text(url) -> str and get_bytes(url) -> bytes, so
    tests can pass a fake.
    """
    config: VoiceConfig
    registry: StudentRegistry
    http: Any
    link_cache: LinkCache
    verbose: bool = False

    @classmethod
    def create(cls, config: Optional[VoiceConfig] = None, verbose: bool = False) -> "VoiceContext":
        config = config or load_config()
        return cls(
            config=config,
            registry=StudentRegistry.load(config, verbose=verbose),
            http=HttpClient.from_config(config, verbose=verbose),
            link_cache=LinkCache.from_config(config, verbose=verbose),
            verbose=verbose,
        )
