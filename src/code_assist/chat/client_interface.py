import logging
from typing import Callable, List, Optional

from .chat_model import ChatModel
from ..core.errors import ConfigurationError
from ..core.handler import RequestHandler
from ..core.payload import build_provider_request, endpoint_url
from ..core.request import (
    CompletionReceived,
    Event,
    RequestConfig,
    RequestEnvelope,
    RequestFinished,
    RequestCancelled,
    RequestType,
)
from ..core.transport import Transport
from ..models.context import ContextData, Role
from ..registry import ProviderRegistry, TemplateRegistry
from ..templates.chat import BasicChat
from ..utils.config import Settings, DEGRADED_ABORT

logger = logging.getLogger(__name__)

ErrorListener = Callable[[str], None]


class ClientInterface:
    """Binds a chat session to a RequestHandler.

    Builds the request for every user message, keeps the assistant reply in
    the session log as it streams, and reports failures to error listeners.
    Must be driven from the event loop that owns the handler.
    """

    def __init__(
        self,
        settings: Settings,
        providers: ProviderRegistry,
        templates: TemplateRegistry,
        chat_model: Optional[ChatModel] = None,
        request_handler: Optional[RequestHandler] = None,
        transport: Optional[Transport] = None,
    ):
        self.settings = settings
        self.providers = providers
        self.templates = templates
        self.chat_model = chat_model if chat_model is not None else ChatModel(settings.HISTORY_FILE)
        self.request_handler = request_handler or RequestHandler(transport)
        self.request_handler.add_listener(self._handle_event)
        self._error_listeners: List[ErrorListener] = []
        self._own_requests: set[str] = set()

    def add_error_listener(self, listener: ErrorListener) -> None:
        self._error_listeners.append(listener)

    def send_message(self, message: str) -> Optional[str]:
        """Send a user message. Returns the request id, or None if nothing was submitted."""
        self.cancel_request()

        provider_name = self.settings.CHAT_PROVIDER
        provider = self.providers.get_provider_by_name(provider_name)
        if provider is None:
            self._report_error(ConfigurationError(f"No provider found with name '{provider_name}'"))
            return None

        template_name = self.settings.CHAT_TEMPLATE
        template = self.templates.get_chat_template(template_name)
        if template is None:
            if self.settings.DEGRADED_MODE == DEGRADED_ABORT:
                self._report_error(ConfigurationError(f"No chat template found with name '{template_name}'"))
                return None
            logger.warning(f"No prompt template found with name '{template_name}', sending undecorated messages")

        system_prompt = self.settings.SYSTEM_PROMPT if self.settings.USE_SYSTEM_PROMPT else None
        context = ContextData.for_chat(message, self.chat_model.history_entries(), system_prompt or None)
        provider_request = build_provider_request(
            self.settings.CHAT_MODEL, context, RequestType.CHAT, provider, template, self.settings
        )

        config = RequestConfig(
            request_type=RequestType.CHAT,
            provider=provider,
            prompt_template=template or BasicChat(),
            url=endpoint_url(self.settings.CHAT_URL, provider, RequestType.CHAT),
            provider_request=provider_request,
            multi_line_completion=False,
            headers=provider.headers(self.settings),
        )
        envelope = RequestEnvelope()

        self.chat_model.add_message(message, Role.USER, envelope.id)
        self._own_requests.add(envelope.id)
        self.request_handler.submit(config, envelope)
        return envelope.id

    def clear_messages(self) -> None:
        """Empty the session log.

        The in-flight request keeps running (and may append its reply to the
        cleared log) unless CLEAR_CANCELS_REQUEST is set.
        """
        if self.settings.CLEAR_CANCELS_REQUEST:
            self.cancel_request()
        self.chat_model.clear()
        logger.info("Chat history cleared")

    def cancel_request(self) -> bool:
        """Cancel the request correlated with the most recent message."""
        request_id = self.chat_model.last_message_id()
        if not request_id:
            return False
        return self.request_handler.cancel(request_id)

    def _handle_event(self, event: Event) -> None:
        if isinstance(event, CompletionReceived):
            if event.request_id not in self._own_requests:
                return
            self._handle_llm_response(event)
        elif isinstance(event, RequestFinished):
            if event.request_id not in self._own_requests:
                return
            self._own_requests.discard(event.request_id)
            if not event.success:
                self._report_error(event.error)
        elif isinstance(event, RequestCancelled):
            self._own_requests.discard(event.request_id)

    def _handle_llm_response(self, event: CompletionReceived) -> None:
        response = event.text.strip()
        messages = self.chat_model.messages
        updating = bool(messages) and messages[-1].role == Role.ASSISTANT.value and messages[-1].message_id == event.request_id
        if response or updating:
            self.chat_model.add_message(response, Role.ASSISTANT, event.request_id)
        if event.is_complete:
            self.chat_model.save_history()
            logger.debug(f"Message completed. Final response for message {event.request_id}: {response}")

    def _report_error(self, error: Exception | str) -> None:
        description = str(error)
        logger.error(description)
        for listener in list(self._error_listeners):
            listener(description)
