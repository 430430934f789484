from .chat_model import ChatModel
from .client_interface import ClientInterface

__all__ = ['ChatModel', 'ClientInterface']
