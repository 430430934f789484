from .base import PromptTemplate, ChatTemplate, CompletionTemplate, TemplateType
from .chat import Llama3, ChatML, Alpaca, BasicChat
from .fim import CodeLlamaFim, StarCoder2Fim, PlainCompletion

__all__ = [
    'PromptTemplate', 'ChatTemplate', 'CompletionTemplate', 'TemplateType',
    'Llama3', 'ChatML', 'Alpaca', 'BasicChat',
    'CodeLlamaFim', 'StarCoder2Fim', 'PlainCompletion',
]
