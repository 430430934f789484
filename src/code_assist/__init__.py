# Re-export the facades and registry builders
from .chat import ChatModel, ClientInterface
from .completion import CompletionInterface
from .registry import ProviderRegistry, TemplateRegistry, default_providers, default_templates

__version__ = "0.3.0"
