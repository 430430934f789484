from .document_reader import DocumentContextReader
from .completion_interface import CompletionInterface

__all__ = ['DocumentContextReader', 'CompletionInterface']
