"""
Speech capabilities relayed to the browser on the other end of a
WebSocket. The browser runs the actual recognition and synthesis and
reports capture outcomes back through the consumer.
"""
import asyncio
from typing import Awaitable, Callable, Optional

from infodesk.chat.errors import SpeechCapabilityError
from infodesk.chat.speech import SpeechRecognizer, SpeechSynthesizer

Send = Callable[[dict], Awaitable[None]]


class BrowserRecognizer(SpeechRecognizer):
    available = True

    def __init__(self, send: Send):
        self._send = send
        self._pending: Optional[asyncio.Future] = None

    @property
    def active(self) -> bool:
        return self._pending is not None and not self._pending.done()

    async def capture(self, lang: str) -> str:
        if self.active:
            raise SpeechCapabilityError('a capture is already in progress')
        self._pending = asyncio.get_running_loop().create_future()
        try:
            await self._send({'type': 'capture.start', 'lang': lang})
            return await self._pending
        finally:
            self._pending = None

    def resolve(self, transcript: str) -> bool:
        """Deliver the final transcript; ``False`` when no capture is waiting."""
        if not self.active:
            return False
        self._pending.set_result(transcript)
        return True

    def reject(self, error: str) -> bool:
        if not self.active:
            return False
        self._pending.set_exception(SpeechCapabilityError(error or 'unknown error'))
        return True

    def cancel(self) -> None:
        if self.active:
            self._pending.cancel()


class BrowserSynthesizer(SpeechSynthesizer):
    available = True

    def __init__(self, send: Send):
        self._send = send

    async def speak(self, text: str, lang: str) -> None:
        await self._send({'type': 'speak', 'text': text, 'lang': lang})
