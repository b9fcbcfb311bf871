"""Exception hierarchy."""


class TabVaultError(Exception):
    """Base error."""


class CaptureNotFoundError(TabVaultError):
    """The capture record does not exist."""

    def __init__(self, capture_id: str) -> None:
        super().__init__(f"Capture not found: {capture_id}")
        self.capture_id = capture_id


class PersistenceError(TabVaultError):
    """The capture store could not be read or written."""


class ProviderError(TabVaultError):
    """A text-generation or embedding backend returned no usable response."""


class ProviderNotConfiguredError(ProviderError):
    """No API key is configured for a backend."""
