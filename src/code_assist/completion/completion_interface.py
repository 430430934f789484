import logging
from typing import Callable, List, Optional

from .document_reader import DocumentContextReader
from ..core.errors import ConfigurationError
from ..core.handler import RequestHandler
from ..core.payload import build_provider_request, endpoint_url
from ..core.request import (
    CompletionReceived,
    Event,
    RequestConfig,
    RequestEnvelope,
    RequestFinished,
    RequestType,
)
from ..core.transport import Transport
from ..registry import ProviderRegistry, TemplateRegistry
from ..templates.fim import PlainCompletion
from ..utils.config import Settings, DEGRADED_ABORT

logger = logging.getLogger(__name__)

CompletionListener = Callable[[str, str], None]


class CompletionInterface:
    """Inline code completion: one request slot, newest request wins.

    Completion listeners are called once per request with ``(text, request_id)``
    when the completion is final; partial output is not surfaced.
    """

    def __init__(
        self,
        settings: Settings,
        providers: ProviderRegistry,
        templates: TemplateRegistry,
        request_handler: Optional[RequestHandler] = None,
        transport: Optional[Transport] = None,
    ):
        self.settings = settings
        self.providers = providers
        self.templates = templates
        self.request_handler = request_handler or RequestHandler(transport)
        self.request_handler.add_listener(self._handle_event)
        self._completion_listeners: List[CompletionListener] = []
        self._error_listeners: List[Callable[[str], None]] = []
        self._current_id: Optional[str] = None

    def add_completion_listener(self, listener: CompletionListener) -> None:
        self._completion_listeners.append(listener)

    def add_error_listener(self, listener: Callable[[str], None]) -> None:
        self._error_listeners.append(listener)

    @property
    def current_request_id(self) -> Optional[str]:
        return self._current_id

    def request_completion(self, text: str, line: int, column: int, file_path: Optional[str] = None) -> Optional[str]:
        """Request a completion at (line, column) of ``text``. Returns the request id or None."""
        self.cancel_request()

        provider = self.providers.get_provider_by_name(self.settings.COMPLETION_PROVIDER)
        if provider is None:
            self._report_error(ConfigurationError(f"No provider found with name '{self.settings.COMPLETION_PROVIDER}'"))
            return None

        template = self.templates.get_completion_template(self.settings.COMPLETION_TEMPLATE)
        if template is None:
            message = f"No completion template found with name '{self.settings.COMPLETION_TEMPLATE}'"
            if self.settings.DEGRADED_MODE == DEGRADED_ABORT:
                self._report_error(ConfigurationError(message))
                return None
            logger.warning(f"{message}, sending the raw prefix")

        context = DocumentContextReader(text, file_path).prepare_context(line, column, self.settings)
        provider_request = build_provider_request(
            self.settings.COMPLETION_MODEL, context, RequestType.COMPLETION, provider, template, self.settings
        )
        config = RequestConfig(
            request_type=RequestType.COMPLETION,
            provider=provider,
            prompt_template=template or PlainCompletion(),
            url=endpoint_url(self.settings.COMPLETION_URL, provider, RequestType.COMPLETION),
            provider_request=provider_request,
            multi_line_completion=self.settings.MULTI_LINE_COMPLETION,
            headers=provider.headers(self.settings),
        )
        envelope = RequestEnvelope()
        self._current_id = envelope.id
        self.request_handler.submit(config, envelope)
        return envelope.id

    def cancel_request(self) -> bool:
        if self._current_id is None:
            return False
        request_id, self._current_id = self._current_id, None
        return self.request_handler.cancel(request_id)

    def _handle_event(self, event: Event) -> None:
        if isinstance(event, CompletionReceived):
            if event.request_id == self._current_id and event.is_complete:
                for listener in list(self._completion_listeners):
                    listener(event.text, event.request_id)
        elif isinstance(event, RequestFinished) and event.request_id == self._current_id:
            self._current_id = None
            if not event.success:
                self._report_error(event.error)

    def _report_error(self, error: Exception | str) -> None:
        description = str(error)
        logger.error(description)
        for listener in list(self._error_listeners):
            listener(description)
