"""
Exception hierarchy for the relay pipeline.
"""
from __future__ import annotations


class RelayError(Exception):
    """Base class for every failure the pipeline reports to its caller."""


class ValidationError(RelayError):
    """The incoming URL is not a supported Instagram link."""


class AcquisitionError(RelayError):
    """Base class for failures while obtaining the media file."""

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        # Raw tool output kept for diagnostics
        self.details = details


class ExtractionEmptyError(AcquisitionError):
    pass


class ProbeError(AcquisitionError):
    pass


class FetchError(AcquisitionError):
    pass


class ReconciliationError(AcquisitionError):
    pass


class AuthenticationError(RelayError):
    """A delivery strategy could not be constructed from the supplied session."""


class DestinationMissingError(RelayError):
    pass


class AllStrategiesExhaustedError(RelayError):
    def __init__(self, message: str, failures: list[BaseException] | None = None):
        super().__init__(message)
        self.failures = list(failures or [])


class TelegramApiError(RelayError):
    """Bot API responded with an error or could not be reached."""

    def __init__(self, method: str, description: str, status_code: int | None = None):
        super().__init__(f"Telegram {method} failed: {description}")
        self.method = method
        self.description = description
        self.status_code = status_code
