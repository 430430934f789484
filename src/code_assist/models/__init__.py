from .context import ContextData, HistoryEntry, Role
from .message import Message

__all__ = ['ContextData', 'HistoryEntry', 'Role', 'Message']
