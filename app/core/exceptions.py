# app/core/exceptions.py


class ChatError(Exception):
    """Base class for errors raised by the chat pipeline."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(ChatError):
    """Message content was empty or too long. Raised before any write."""


class PersistenceError(ChatError):
    """The message store could not be read or written."""


class ConfigurationError(ChatError):
    """The completion provider cannot be used at all (e.g. missing API key)."""


class InvalidProviderResponse(ChatError):
    """The provider answered, but without a usable completion."""
