"""Error taxonomy for the report pipeline."""

from typing import Optional


class AtisError(Exception):
    """Base class for pipeline errors."""


class ConfigurationError(AtisError):
    """A required secret or setting is missing. Fatal."""


class ProviderFetchError(AtisError):
    """A provider answered with a non-success status or the transport failed."""

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.status_code = status_code


class ProviderParseError(AtisError):
    """A provider payload does not have the expected structure."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class TimeConversionError(AtisError):
    """A wall-clock timestamp or time zone could not be resolved."""
