"""Error taxonomy for the request pipeline.

Cancellation is deliberately absent: a caller-initiated cancel is a normal
terminal state and never surfaces as an exception.
"""


class CodeAssistError(Exception):
    """Base class for every error raised by code_assist."""


class ConfigurationError(CodeAssistError):
    """A configured provider or template name could not be resolved."""


class TransportError(CodeAssistError):
    """Connection failure or non-success HTTP status from the backend."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(CodeAssistError):
    """A complete stream frame could not be interpreted in the provider's wire format."""

    def __init__(self, message: str, frame: bytes | None = None):
        super().__init__(message)
        self.frame = frame


class ProviderError(CodeAssistError):
    """The backend reported an error inside the stream."""
