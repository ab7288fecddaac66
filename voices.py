#!/usr/bin/env python3
"""Student voice-line lookup and sync.

Commands:
    search          Rank students for a typed name (Korean or English)
    resolve         Find the audio page, files and download links for the best match
    download        Resolve, then download every voice file into a folder
    sync            Resolve all students and rebuild the link cache
    check-formulas  Validate the variant formula tables

Usage:
    python voices.py search 호시노
    python voices.py resolve "hoshino swimsuit" --verbose
    python voices.py download aru --out ./voices
    python voices.py sync --concurrency 3 --force
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from bavoice.common.config import DEFAULT_SYNC_CONCURRENCY, MAX_SYNC_CONCURRENCY, load_config
from bavoice.common.errors import FormulaValidationError
from bavoice.common.logging import setup_worker_prefixed_stdout
from bavoice.schema.audio import ProgressEvent
from bavoice.schema.formulas import load_formula_table
from bavoice.output.context import VoiceContext
from bavoice.output.download import download_voice_files
from bavoice.output.pipeline import resolve_voices_for_student, search_students
from bavoice.output.sync import SyncOptions, sync_all_voice_links


def _print_progress(event: ProgressEvent) -> None:
    status = "ok" if event.ok else "fail"
    suffix = f" ({event.reason})" if event.reason and not event.ok else ""
    print(f"[progress] [{status}] {event.completed}/{event.total} {event.current_item}{suffix}")


def cmd_search(ctx: VoiceContext, args) -> int:
    matches = search_students(ctx, args.query)
    if not matches:
        print(f'No student matched "{args.query}"')
        return 1
    for idx, student in enumerate(matches, start=1):
        korean = student.korean_name or "-"
        print(f"{idx:2d}. {student.display_name}  {korean}  ({student.href})")
    return 0


def cmd_resolve(ctx: VoiceContext, args) -> int:
    result = resolve_voices_for_student(ctx, args.query)
    if not result.ok:
        print(f"[error] {result.reason}", file=sys.stderr)
        return 1
    if args.json:
        payload = result.to_resolution().to_json()
        payload["href"] = result.student.href
        payload["fromCache"] = result.from_cache
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0
    source = "cache" if result.from_cache else "wiki"
    print(f"{result.student.display_name}: {result.audio_page_title} ({len(result.file_identifiers)} files, from {source})")
    for ident in result.file_identifiers:
        links = result.download_links_by_file.get(ident) or []
        print(f"  {ident}")
        if links:
            print(f"    {links[0]}")
    return 0


def cmd_download(ctx: VoiceContext, args) -> int:
    result = resolve_voices_for_student(ctx, args.query)
    if not result.ok:
        print(f"[error] {result.reason}", file=sys.stderr)
        return 1
    summary = download_voice_files(
        ctx,
        result.student.english_name or result.student.korean_name or "unknown",
        result.file_identifiers,
        Path(args.out),
        result.download_links_by_file,
        on_progress=_print_progress,
    )
    print(summary.message)
    return 0 if summary.ok else 1


def cmd_sync(ctx: VoiceContext, args) -> int:
    setup_worker_prefixed_stdout()
    summary = sync_all_voice_links(ctx, SyncOptions(
        concurrency=args.concurrency,
        force_refresh=args.force,
        query=args.query,
        link=args.link,
        output_path=Path(args.output) if args.output else None,
        on_progress=_print_progress if args.progress else None,
    ))
    return 0 if summary.fail_count == 0 else 1


def cmd_check_formulas(config, args) -> int:
    try:
        table = load_formula_table(config.name_formula_path, config.type_formula_path)
    except FormulaValidationError as e:
        print(f"[error] {e}", file=sys.stderr)
        return 2
    print(f"[formulas] [ok] {len(table.base_korean_names)} base names, {len(table.english_labels)} variant types")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Find and download student voice lines from the wiki")
    parser.add_argument("--config", type=str, help="Path to voice-config.json")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("search", help="Rank students for a name")
    p.add_argument("query")

    p = sub.add_parser("resolve", help="Resolve audio files and download links")
    p.add_argument("query")
    p.add_argument("--json", action="store_true", help="Print the resolution as JSON")

    p = sub.add_parser("download", help="Resolve and download voice files")
    p.add_argument("query")
    p.add_argument("--out", default=".", help="Target folder (default: current directory)")

    p = sub.add_parser("sync", help="Rebuild the link cache for all students")
    p.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help=f"Parallel workers (default: config or {DEFAULT_SYNC_CONCURRENCY}, max {MAX_SYNC_CONCURRENCY})",
    )
    p.add_argument("--force", action="store_true", help="Re-resolve students that are already cached")
    p.add_argument("--query", help="Only students whose names contain this text")
    p.add_argument("--link", help="Only the student with this exact href")
    p.add_argument("--output", help="Write the cache here instead of the user cache")
    p.add_argument("--progress", action="store_true", help="Print a progress line per student")

    sub.add_parser("check-formulas", help="Validate the variant formula tables")

    args = parser.parse_args(argv)

    try:
        config = load_config(Path(args.config) if args.config else None)
    except (OSError, ValueError) as e:
        print(f"[error] {e}", file=sys.stderr)
        return 2

    if args.command == "check-formulas":
        return cmd_check_formulas(config, args)
    if args.command == "sync" and args.concurrency is None:
        args.concurrency = config.concurrency

    ctx = VoiceContext.create(config, verbose=args.verbose)
    handlers = {
        "search": cmd_search,
        "resolve": cmd_resolve,
        "download": cmd_download,
        "sync": cmd_sync,
    }
    return handlers[args.command](ctx, args)


if __name__ == "__main__":
    raise SystemExit(main())
