"""
Error taxonomy for the logging pipeline.

Stage errors (AugmentationError, ExtractionEngineError) wrap the lower-level
AuthError / UpstreamError / timeouts so callers handle one type per stage.
Classification and extraction misses are not errors and have no type here.
"""
from typing import Optional


class FoodLogError(Exception):
    """Base class for every error raised by the foodlog package."""


class AuthError(FoodLogError):
    """A provider credential is missing or still set to its placeholder."""


class UpstreamError(FoodLogError):
    """A provider answered non-2xx or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AugmentationError(FoodLogError):
    """Search grounding failed; the turn continues without it."""


class ExtractionEngineError(FoodLogError):
    """The language model call failed, timed out, or returned no choices."""


class StorageError(FoodLogError):
    """A ledger write failed."""
