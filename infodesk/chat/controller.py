"""
Chat session controller.

Holds the transcript and the session state of one ephemeral
conversation, forwards user text to the reply service and optionally
reads replies aloud. A cycle goes ``idle -> awaiting reply -> idle``:
``submit`` is the only way in, and the reply (or its failure) is the
only way out.
"""
from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, Protocol

from asgiref.sync import sync_to_async

from infodesk.chat.errors import SpeechCapabilityError
from infodesk.chat.messages import (
    FALLBACK_REPLY,
    GREETING,
    SENDER_BOT,
    SENDER_USER,
    Message,
    Transcript,
)
from infodesk.chat.speech import PlatformServices

logger = logging.getLogger(__name__)


class ReplyService(Protocol):
    def send(self, message: str) -> str: ...


Listener = Callable[['ChatSessionController'], Awaitable[None]]


class ChatSessionController:
    def __init__(self, reply_service: ReplyService, platform: Optional[PlatformServices] = None, *,
                 auto_speak: bool = True, greeting: str = GREETING,
                 listener: Optional[Listener] = None):
        self.transcript = Transcript(greeting)
        self.pending_input = ''
        self.last_sent_query = ''
        self.awaiting_reply = False
        self.auto_speak_enabled = auto_speak
        self.capturing = False
        self.platform = platform or PlatformServices()
        self._reply_service = reply_service
        self._listener = listener
        if not self.platform.can_recognize:
            logger.warning('Speech recognition is not available; voice input is disabled for this session')

    # ------------------------------------------------------------------
    # Control availability
    # ------------------------------------------------------------------
    @property
    def can_submit(self) -> bool:
        return not self.awaiting_reply and bool(self.pending_input.strip())

    @property
    def can_resend(self) -> bool:
        return not self.awaiting_reply and bool(self.last_sent_query)

    @property
    def can_capture(self) -> bool:
        return self.platform.can_recognize and not self.awaiting_reply and not self.capturing

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def set_input(self, text: str) -> None:
        self.pending_input = text

    async def submit(self, text: Optional[str] = None) -> Optional[Message]:
        """Send ``text`` (or the pending input) and wait for the reply.

        Returns the bot message appended for this cycle, or ``None`` when
        the call was a no-op: blank text, or a reply already pending.
        An explicit ``text`` leaves the pending input untouched.
        """
        explicit = bool(text)
        message = text if explicit else self.pending_input
        if not message.strip():
            return None
        if self.awaiting_reply:
            logger.debug('Submit rejected: a reply is already pending')
            return None

        self.transcript.append(Message(SENDER_USER, message))
        self.last_sent_query = message
        if not explicit:
            self.pending_input = ''
        self.awaiting_reply = True
        await self._notify()

        try:
            reply_text = await sync_to_async(self._reply_service.send, thread_sensitive=False)(message)
        except Exception:
            # every reply-service failure becomes a visible bot message
            logger.exception('Error sending message to reply service')
            reply = self.transcript.append(Message(SENDER_BOT, FALLBACK_REPLY))
            self.awaiting_reply = False
            await self._notify()
            return reply

        reply = self.transcript.append(Message(SENDER_BOT, reply_text))
        self.awaiting_reply = False
        await self._notify()
        await self.speak(reply_text)
        return reply

    async def resend(self) -> Optional[Message]:
        if not self.last_sent_query:
            return None
        return await self.submit(self.last_sent_query)

    def toggle_auto_speak(self) -> bool:
        self.auto_speak_enabled = not self.auto_speak_enabled
        return self.auto_speak_enabled

    async def start_voice_capture(self) -> Optional[str]:
        """Capture one utterance into the pending input without sending it."""
        if not self.platform.can_recognize:
            return None
        if self.capturing:
            logger.warning('Speech recognition error: a capture is already in progress')
            return None

        self.capturing = True
        try:
            transcript = await self.platform.recognizer.capture(self.platform.lang)
        except SpeechCapabilityError as exc:
            logger.warning('Speech recognition error: %s', exc)
            self.capturing = False
            await self._notify()
            return None

        self.capturing = False
        self.pending_input = transcript
        await self._notify()
        return transcript

    async def speak(self, text: str) -> None:
        if not (self.auto_speak_enabled and self.platform.can_synthesize):
            return
        try:
            await self.platform.synthesizer.speak(text, self.platform.lang)
        except SpeechCapabilityError as exc:
            logger.warning('Speech synthesis error: %s', exc)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    def snapshot(self) -> dict:
        return {
            'messages': self.transcript.as_list(),
            'input': self.pending_input,
            'lastSentQuery': self.last_sent_query,
            'awaitingReply': self.awaiting_reply,
            'autoSpeak': self.auto_speak_enabled,
            'capturing': self.capturing,
            'speech': {
                'recognition': self.platform.can_recognize,
                'synthesis': self.platform.can_synthesize,
                'lang': self.platform.lang,
            },
            'controls': {
                'send': self.can_submit,
                'resend': self.can_resend,
                'voice': self.can_capture,
            },
        }

    async def _notify(self) -> None:
        if self._listener is not None:
            await self._listener(self)
