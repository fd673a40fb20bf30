"""Chat session: transcript, reply client, speech capabilities and controller."""
from .controller import ChatSessionController
from .errors import ReplyServiceError, SpeechCapabilityError
from .messages import FALLBACK_REPLY, GREETING, Message, Transcript
from .reply import ReplyClient
from .speech import PlatformServices, resolve_platform_services

__all__ = [
    "ChatSessionController",
    "ReplyServiceError",
    "SpeechCapabilityError",
    "FALLBACK_REPLY",
    "GREETING",
    "Message",
    "Transcript",
    "ReplyClient",
    "PlatformServices",
    "resolve_platform_services",
]
