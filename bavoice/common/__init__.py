"""Common utilities shared across input and output processing."""

from bavoice.common.utils import (
    normalize_whitespace,
    has_hangul,
    to_slug,
    split_base_and_variant,
    deslugify,
    title_case,
    unique_preserve_order,
    sanitize_filename,
    ensure_dir,
)
from bavoice.common.logging import (
    set_worker_log_context,
    clear_worker_log_context,
    setup_worker_prefixed_stdout,
)
from bavoice.common.config import VoiceConfig, load_config
from bavoice.common.errors import (
    VoiceError,
    DataUnavailable,
    NetworkFailure,
    ScrapeMismatch,
    FormulaValidationError,
)
from bavoice.common.http import HttpClient

__all__ = [
    # utils
    "normalize_whitespace",
    "has_hangul",
    "to_slug",
    "split_base_and_variant",
    "deslugify",
    "title_case",
    "unique_preserve_order",
    "sanitize_filename",
    "ensure_dir",
    # logging
    "set_worker_log_context",
    "clear_worker_log_context",
    "setup_worker_prefixed_stdout",
    # config
    "VoiceConfig",
    "load_config",
    # errors
    "VoiceError",
    "DataUnavailable",
    "NetworkFailure",
    "ScrapeMismatch",
    "FormulaValidationError",
    # http
    "HttpClient",
]
