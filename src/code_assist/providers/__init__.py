from .base import Provider, ParsedChunk, FrameBuffer
from .ollama import OllamaProvider
from .openai_compatible import OpenAICompatibleProvider, LMStudioProvider

__all__ = ['Provider', 'ParsedChunk', 'FrameBuffer', 'OllamaProvider', 'OpenAICompatibleProvider', 'LMStudioProvider']
