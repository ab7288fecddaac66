#!/usr/bin/env python3
"""Rebuild bavoice/data/students.json from a list of wiki audio page titles.

The input file has one title per line, e.g. "Hoshino (Swimsuit)/audio".
Names come from the variant formula tables; the tables are validated first
and any problem aborts the run, so a broken dataset is never written.
Korean base names missing from the tables are taken from the current
dataset when it has them.

Usage:
    python scripts/derive_students.py titles.txt [--dry-run]
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))


def main() -> int:
    from bavoice.common.cache import read_envelope, write_envelope
    from bavoice.common.config import load_config
    from bavoice.common.errors import FormulaValidationError
    from bavoice.common.utils import normalize_whitespace
    from bavoice.schema.formulas import derive_student, load_formula_table

    parser = argparse.ArgumentParser(description="Rebuild students.json from audio page titles")
    parser.add_argument("titles", type=str, help="Text file with one audio page title per line")
    parser.add_argument("--dry-run", action="store_true", help="Print the result instead of writing it")
    args = parser.parse_args()

    config = load_config()
    try:
        table = load_formula_table(config.name_formula_path, config.type_formula_path)
    except FormulaValidationError as e:
        print(f"[error] {e}", file=sys.stderr)
        return 2

    existing = read_envelope(config.bundled_students_path, list)["students"]
    fallback_bases = {}
    for raw in existing:
        if not isinstance(raw, dict):
            continue
        english_base = normalize_whitespace(raw.get("englishName") or "").lower().split("_")[0]
        korean_base = normalize_whitespace(raw.get("koreanName") or "").split("_")[0]
        if english_base and korean_base:
            fallback_bases.setdefault(english_base, korean_base)

    by_href = {}
    skipped = 0
    for line in Path(args.titles).read_text(encoding="utf-8").splitlines():
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        student = derive_student(line, table, fallback_bases)
        if student is None:
            skipped += 1
            print(f"[students] [skip] {line.strip()}")
            continue
        by_href[student.href] = student

    students = sorted(by_href.values(), key=lambda s: s.english_name or "")
    print(f"[students] [info] {len(students)} students, {skipped} skipped")
    if args.dry_run:
        for s in students:
            print(f"  {s.href}  {s.korean_name or '-'}")
        return 0

    write_envelope(config.bundled_students_path, [s.to_json() for s in students], verbose=True, log_prefix="students")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
