"""Provider source adapters for the scan pipeline."""

from .base import SourceAdapter
from .chat import ChatAdapter
from .mail import MailAdapter
from .registry import AdapterRegistry, build_default_registry

__all__ = [
    "AdapterRegistry",
    "ChatAdapter",
    "MailAdapter",
    "SourceAdapter",
    "build_default_registry",
]
