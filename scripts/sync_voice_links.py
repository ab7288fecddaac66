#!/usr/bin/env python3
"""Rebuild the bundled voice-link map (bavoice/data/voice-links.json).

Resolves every student in the bundled dataset against the wiki and writes
the result next to it, so fresh installs start with a warm link cache.

Usage:
    python scripts/sync_voice_links.py [--force] [--concurrency N] [--query TEXT]
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))


def main() -> int:
    from bavoice.common.config import load_config
    from bavoice.common.logging import setup_worker_prefixed_stdout
    from bavoice.output.context import VoiceContext
    from bavoice.output.sync import SyncOptions, sync_all_voice_links

    parser = argparse.ArgumentParser(description="Rebuild bavoice/data/voice-links.json")
    parser.add_argument("--force", action="store_true", help="Re-resolve students already in the map")
    parser.add_argument("--concurrency", type=int, default=None, help="Parallel workers")
    parser.add_argument("--query", help="Only students whose names contain this text")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    args = parser.parse_args()

    config = load_config()
    setup_worker_prefixed_stdout()
    ctx = VoiceContext.create(config, verbose=args.verbose)
    if len(ctx.registry) == 0:
        print("[error] bundled students.json has no students", file=sys.stderr)
        return 1

    summary = sync_all_voice_links(ctx, SyncOptions(
        concurrency=args.concurrency or config.concurrency,
        force_refresh=args.force,
        query=args.query,
        output_path=config.bundled_voice_links_path,
    ))
    return 0 if summary.fail_count == 0 else 1


if __name__ == "__main__":
    raise SystemExit(main())
