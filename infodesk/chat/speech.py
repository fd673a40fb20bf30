"""
Speech capabilities for a chat session.

Recognition and synthesis are provided by whatever platform hosts the
session (a connected browser, for instance). Each capability comes in
an available variant backed by the platform and an unavailable variant
that degrades to a no-op. :func:`resolve_platform_services` picks the
variants once, when the session starts, and the result is handed to
the controller.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from django.conf import settings

from infodesk.chat.errors import SpeechCapabilityError


class SpeechRecognizer:
    """Single-utterance speech-to-text.

    ``capture`` resolves exactly once per call with the top final
    transcript, or raises :class:`SpeechCapabilityError`.
    """
    available = False

    async def capture(self, lang: str) -> str:
        raise NotImplementedError


class UnavailableRecognizer(SpeechRecognizer):
    available = False

    async def capture(self, lang: str) -> str:
        raise SpeechCapabilityError('speech recognition is not available')


class SpeechSynthesizer:
    """Text-to-speech playback; the platform queues utterances in call order."""
    available = False

    async def speak(self, text: str, lang: str) -> None:
        raise NotImplementedError


class UnavailableSynthesizer(SpeechSynthesizer):
    available = False

    async def speak(self, text: str, lang: str) -> None:
        return None


@dataclass(frozen=True)
class PlatformServices:
    recognizer: SpeechRecognizer = field(default_factory=UnavailableRecognizer)
    synthesizer: SpeechSynthesizer = field(default_factory=UnavailableSynthesizer)
    lang: str = 'en-US'

    @property
    def can_recognize(self) -> bool:
        return self.recognizer.available

    @property
    def can_synthesize(self) -> bool:
        return self.synthesizer.available


def resolve_platform_services(*, recognizer: Optional[SpeechRecognizer] = None,
                              synthesizer: Optional[SpeechSynthesizer] = None,
                              lang: Optional[str] = None) -> PlatformServices:
    """Bind the speech capabilities for one session.

    Missing or unavailable capabilities are replaced by their
    unavailable variants so callers never need to check for ``None``.
    """
    if recognizer is None or not recognizer.available:
        recognizer = UnavailableRecognizer()
    if synthesizer is None or not synthesizer.available:
        synthesizer = UnavailableSynthesizer()
    return PlatformServices(
        recognizer=recognizer,
        synthesizer=synthesizer,
        lang=lang or settings.CHAT_SPEECH_LANG,
    )
