from .errors import CodeAssistError, ConfigurationError, TransportError, ParseError, ProviderError
from .request import (
    RequestType,
    RequestConfig,
    RequestEnvelope,
    CompletionReceived,
    RequestFinished,
    RequestCancelled,
    Event,
)

# handler and transport import code_assist.providers, which imports this package;
# import them from their own modules.

__all__ = [
    'CodeAssistError', 'ConfigurationError', 'TransportError', 'ParseError', 'ProviderError',
    'RequestType', 'RequestConfig', 'RequestEnvelope',
    'CompletionReceived', 'RequestFinished', 'RequestCancelled', 'Event',
]
