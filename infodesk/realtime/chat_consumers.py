import asyncio
import json
import logging

from channels.generic.websocket import AsyncWebsocketConsumer
from django.conf import settings

from infodesk.chat.controller import ChatSessionController
from infodesk.chat.reply import ReplyClient
from infodesk.chat.speech import resolve_platform_services
from infodesk.realtime.browser_speech import BrowserRecognizer, BrowserSynthesizer
from infodesk.serializers.directory import clean_text

logger = logging.getLogger(__name__)


async def _ws_error(ws, code: int, message: str):
    """
    Unified error frame. Codes: 4xxx client errors, 5xxx server errors.
    The connection stays open; the session must remain interactive.
    """
    await ws.send(json.dumps({"type": "error", "code": code, "message": message}))


class ChatSessionConsumer(AsyncWebsocketConsumer):
    """One chat session per connection.

    The browser opens the session with a single
    ``{"type": "hello", "speech": {"recognition": bool, "synthesis": bool}}``
    frame. Capabilities are resolved from it once and stay fixed; a second
    hello is refused, as is any other frame sent before it.
    """

    async def connect(self):
        self.tasks = set()
        self.recognizer = None
        self.controller = None
        await self.accept()
        logger.info("Chat connection accepted, waiting for hello")

    async def disconnect(self, close_code):
        recognizer = getattr(self, "recognizer", None)
        if recognizer is not None:
            recognizer.cancel()
        for task in list(getattr(self, "tasks", ())):
            task.cancel()
        logger.info("Chat session closed: code=%s", close_code)

    async def send_json(self, payload: dict):
        await self.send(json.dumps(payload))

    async def receive(self, text_data=None, bytes_data=None):
        if not text_data:
            return

        try:
            data = json.loads(text_data)
        except Exception:
            await _ws_error(self, 4000, "invalid_json")
            return

        if not isinstance(data, dict):
            await _ws_error(self, 4001, "invalid_payload")
            return

        msg_type = data.get("type")
        handler = self.HANDLERS.get(msg_type)
        if handler is None:
            await _ws_error(self, 4002, "unsupported_type")
            return
        if self.controller is None and msg_type != "hello":
            await _ws_error(self, 4014, "hello_required")
            return
        await handler(self, data)

    # ------------------------------------------------------------------
    # Message handlers
    # ------------------------------------------------------------------
    async def _content(self, data, key="content"):
        """Validated, markup-free text field, or ``None`` after an error was sent."""
        content = data.get(key, "")
        if not isinstance(content, str):
            await _ws_error(self, 4003, "invalid_content_type")
            return None
        if len(content) > settings.CHAT_MAX_MESSAGE_LENGTH:
            await _ws_error(self, 4005, "message_too_long")
            return None
        return clean_text(content, strip_whitespace=False)

    async def handle_hello(self, data):
        if self.controller is not None:
            await _ws_error(self, 4015, "session_already_started")
            return
        speech = data.get("speech") or {}
        if not isinstance(speech, dict) or any(
            not isinstance(speech.get(k, False), bool) for k in ("recognition", "synthesis")
        ):
            await _ws_error(self, 4006, "invalid_speech_flags")
            return

        self.recognizer = BrowserRecognizer(self.send_json) if speech.get("recognition") else None
        synthesizer = BrowserSynthesizer(self.send_json) if speech.get("synthesis") else None
        platform = resolve_platform_services(recognizer=self.recognizer, synthesizer=synthesizer)
        self.controller = ChatSessionController(
            ReplyClient(),
            platform,
            auto_speak=settings.CHAT_AUTO_SPEAK,
            listener=self._push_state,
        )
        logger.info(
            "Chat session opened: recognition=%s synthesis=%s",
            platform.can_recognize, platform.can_synthesize,
        )
        await self._push_state(self.controller)

    async def handle_input(self, data):
        if self.controller.awaiting_reply:
            await _ws_error(self, 4009, "reply_pending")
            return
        content = await self._content(data)
        if content is None:
            return
        self.controller.set_input(content)
        await self._push_state(self.controller)

    async def handle_send(self, data):
        if self.controller.awaiting_reply:
            await _ws_error(self, 4009, "reply_pending")
            return
        if "content" in data:
            content = await self._content(data)
            if content is None:
                return
            self.controller.set_input(content)
        if not self.controller.pending_input.strip():
            await _ws_error(self, 4004, "empty_message")
            return
        self._spawn(self.controller.submit())

    async def handle_resend(self, data):
        if self.controller.awaiting_reply:
            await _ws_error(self, 4009, "reply_pending")
            return
        if not self.controller.can_resend:
            await _ws_error(self, 4010, "nothing_to_resend")
            return
        self._spawn(self.controller.resend())

    async def handle_toggle_auto_speak(self, data):
        self.controller.toggle_auto_speak()
        await self._push_state(self.controller)

    async def handle_capture(self, data):
        if not self.controller.platform.can_recognize:
            await _ws_error(self, 4011, "speech_unavailable")
            return
        if not self.controller.can_capture:
            await _ws_error(self, 4012, "capture_not_allowed")
            return
        self._spawn(self.controller.start_voice_capture())

    async def handle_capture_result(self, data):
        transcript = await self._content(data, "transcript")
        if transcript is None:
            return
        if self.recognizer is None or not self.recognizer.resolve(transcript):
            await _ws_error(self, 4013, "no_active_capture")

    async def handle_capture_error(self, data):
        error = str(data.get("error") or "")
        if self.recognizer is None or not self.recognizer.reject(error):
            await _ws_error(self, 4013, "no_active_capture")

    HANDLERS = {
        "hello": handle_hello,
        "input": handle_input,
        "send": handle_send,
        "resend": handle_resend,
        "toggle_auto_speak": handle_toggle_auto_speak,
        "capture": handle_capture,
        "capture.result": handle_capture_result,
        "capture.error": handle_capture_error,
    }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    async def _push_state(self, controller):
        await self.send_json({"type": "state", **controller.snapshot()})

    def _spawn(self, coro):
        # Replies and captures run beside the receive loop so capture
        # results and further frames keep flowing while they are pending.
        task = asyncio.ensure_future(coro)
        self.tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task):
        self.tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Chat session task failed", exc_info=task.exception())
