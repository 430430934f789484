from typing import Any, Dict, List, Optional, TYPE_CHECKING

from .request import RequestType
from ..models.context import ContextData

if TYPE_CHECKING:
    from ..providers.base import Provider
    from ..templates.base import PromptTemplate
    from ..utils.config import Settings


def plain_messages(context: ContextData) -> List[dict]:
    """Undecorated role/content messages: optional system prompt, then history."""
    messages = []
    if context.system_prompt:
        messages.append({"role": "system", "content": context.system_prompt})
    messages.extend(entry.to_api_format() for entry in context.history or ())
    return messages


def build_provider_request(
    model: str,
    context: ContextData,
    request_type: RequestType,
    provider: "Provider",
    template: Optional["PromptTemplate"],
    settings: "Settings",
) -> Dict[str, Any]:
    """Assemble the JSON payload: base fields, then template, then provider decoration.

    With ``template=None`` the undecorated fields are kept (plain messages for
    chat, the raw prefix for completion).
    """
    request: Dict[str, Any] = {"model": model, "stream": True}
    if request_type == RequestType.CHAT:
        request["messages"] = plain_messages(context)
    else:
        request["prompt"] = context.prefix

    if template is not None:
        template.prepare_request(request, context)
    provider.prepare_request(request, request_type, settings)
    return request


def endpoint_url(base_url: str, provider: "Provider", request_type: RequestType) -> str:
    return base_url.rstrip("/") + provider.endpoint(request_type)
