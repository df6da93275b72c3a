"""Message channel bus."""

from .bus import MessageBus, MessageHandler
from .models import Message, MessageResponse

__all__ = ["Message", "MessageBus", "MessageHandler", "MessageResponse"]
