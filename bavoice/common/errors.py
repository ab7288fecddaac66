"""Exception types raised inside the library.

Only FormulaValidationError is allowed to abort a run. The others are
caught at the pipeline boundary and turned into per-student results.
"""


class VoiceError(Exception):
    """Base class for library errors."""


class DataUnavailable(VoiceError):
    """A dataset or cache file is missing or cannot be parsed."""


class NetworkFailure(VoiceError):
    """A fetch timed out, could not connect, or returned a non-2xx status."""

    def __init__(self, url: str, message: str, status_code: int = 0):
        super().__init__(f"{message} ({url})")
        self.url = url
        self.status_code = status_code


class ScrapeMismatch(VoiceError):
    """A page was fetched but did not contain the expected markup."""


class FormulaValidationError(VoiceError, ValueError):
    """Variant formula tables contain empty or duplicated keys/values."""


__all__ = [
    "VoiceError",
    "DataUnavailable",
    "NetworkFailure",
    "ScrapeMismatch",
    "FormulaValidationError",
]
