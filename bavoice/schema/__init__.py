"""Data types shared by the registry, resolver and pipeline."""

from bavoice.schema.student import StudentRecord, resolve_image_url
from bavoice.schema.formulas import (
    VariantFormulaTable,
    load_formula_table,
    derive_student,
)
from bavoice.schema.audio import (
    AudioResolution,
    read_link_entry,
    ResolveResult,
    ProgressEvent,
    ProgressCallback,
    SyncSummary,
    DownloadResult,
    DownloadSummary,
)

__all__ = [
    "StudentRecord",
    "resolve_image_url",
    "VariantFormulaTable",
    "load_formula_table",
    "derive_student",
    "AudioResolution",
    "read_link_entry",
    "ResolveResult",
    "ProgressEvent",
    "ProgressCallback",
    "SyncSummary",
    "DownloadResult",
    "DownloadSummary",
]
