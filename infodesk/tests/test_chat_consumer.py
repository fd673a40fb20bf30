"""
WebSocket chat sessions, end to end through the Channels consumer.

The reply client is swapped for an in-process fake with ``monkeypatch``
so no HTTP leaves the test.
"""
import pytest
from asgiref.sync import async_to_sync
from channels.testing import WebsocketCommunicator

from infodesk.chat.errors import ReplyServiceError
from infodesk.chat.messages import FALLBACK_REPLY, GREETING
from infodesk.realtime import chat_consumers
from infodesk.realtime.chat_consumers import ChatSessionConsumer

from .fakes import BlockingReplyService, FakeReplyService

# Channels closes stale DB connections around every consumer call.
pytestmark = pytest.mark.django_db(transaction=True)


@pytest.fixture
def reply_service(monkeypatch):
    service = FakeReplyService(reply="9am-5pm")
    monkeypatch.setattr(chat_consumers, "ReplyClient", lambda: service)
    return service


def run(scenario, speech=None, hello=True):
    """Connect, optionally open the session with ``hello``, then run ``scenario``.

    With ``hello`` the scenario receives the communicator after the first
    state frame has been consumed.
    """
    async def wrapper():
        communicator = WebsocketCommunicator(ChatSessionConsumer.as_asgi(), "/ws/chat/")
        connected, _ = await communicator.connect()
        assert connected
        try:
            if hello:
                await communicator.send_json_to({"type": "hello", "speech": speech or {}})
                state = await communicator.receive_json_from()
                assert state["type"] == "state"
            return await scenario(communicator)
        finally:
            await communicator.disconnect()
    return async_to_sync(wrapper)()


def test_hello_pushes_greeting_state(reply_service):
    async def scenario(ws):
        assert await ws.receive_nothing()
        await ws.send_json_to({"type": "hello"})
        return await ws.receive_json_from()

    state = run(scenario, hello=False)
    assert state["type"] == "state"
    assert state["messages"] == [{"sender": "bot", "text": GREETING}]
    assert state["awaitingReply"] is False
    assert state["speech"]["recognition"] is False
    assert state["controls"] == {"send": False, "resend": False, "voice": False}


def test_hello_declares_speech_support(reply_service):
    async def scenario(ws):
        await ws.send_json_to({"type": "hello", "speech": {"recognition": True, "synthesis": True}})
        return await ws.receive_json_from()

    state = run(scenario, hello=False)
    assert state["speech"]["recognition"] is True
    assert state["speech"]["synthesis"] is True
    assert state["controls"]["voice"] is True


def test_second_hello_is_refused(reply_service):
    async def scenario(ws):
        await ws.send_json_to({"type": "hello", "speech": {"recognition": True}})
        refused = await ws.receive_json_from()
        await ws.send_json_to({"type": "capture"})
        return refused, await ws.receive_json_from()

    refused, capture = run(scenario)
    assert refused == {"type": "error", "code": 4015, "message": "session_already_started"}
    assert capture["code"] == 4011


def test_frames_before_hello_are_refused(reply_service):
    async def scenario(ws):
        await ws.send_json_to({"type": "send", "content": "hi"})
        return await ws.receive_json_from()

    assert run(scenario, hello=False) == {"type": "error", "code": 4014, "message": "hello_required"}
    assert reply_service.calls == []


@pytest.mark.parametrize("speech", [["recognition"], {"recognition": "yes"}, {"synthesis": 1}])
def test_hello_with_malformed_speech_flags(reply_service, speech):
    async def scenario(ws):
        await ws.send_json_to({"type": "hello", "speech": speech})
        error = await ws.receive_json_from()
        await ws.send_json_to({"type": "hello"})
        return error, await ws.receive_json_from()

    error, state = run(scenario, hello=False)
    assert error == {"type": "error", "code": 4006, "message": "invalid_speech_flags"}
    assert state["type"] == "state"


def test_send_round_trip(reply_service):
    async def scenario(ws):
        await ws.send_json_to({"type": "send", "content": "What are visiting hours?"})
        pending = await ws.receive_json_from()
        done = await ws.receive_json_from()
        return pending, done

    pending, done = run(scenario)
    assert pending["awaitingReply"] is True
    assert pending["input"] == ""
    assert pending["messages"][-1] == {"sender": "user", "text": "What are visiting hours?"}
    assert done["awaitingReply"] is False
    assert done["messages"][-1] == {"sender": "bot", "text": "9am-5pm"}
    assert done["controls"]["resend"] is True
    assert reply_service.calls == ["What are visiting hours?"]


def test_markup_is_stripped_before_sending(reply_service):
    async def scenario(ws):
        await ws.send_json_to({"type": "send", "content": "<img src=x onerror=alert(1)>hi"})
        pending = await ws.receive_json_from()
        await ws.receive_json_from()
        await ws.send_json_to({"type": "input", "content": "<script>x</script>draft "})
        return pending, await ws.receive_json_from()

    pending, edited = run(scenario)
    assert reply_service.calls == ["hi"]
    assert pending["messages"][-1] == {"sender": "user", "text": "hi"}
    assert "<" not in edited["input"]
    assert edited["input"].endswith("draft ")


def test_edits_refused_while_reply_pending(monkeypatch):
    service = BlockingReplyService(reply="done")
    monkeypatch.setattr(chat_consumers, "ReplyClient", lambda: service)

    async def scenario(ws):
        await ws.send_json_to({"type": "send", "content": "first"})
        await ws.receive_json_from()
        await ws.send_json_to({"type": "send", "content": "other"})
        send_error = await ws.receive_json_from()
        await ws.send_json_to({"type": "input", "content": "draft"})
        input_error = await ws.receive_json_from()
        service.release.set()
        return send_error, input_error, await ws.receive_json_from()

    send_error, input_error, done = run(scenario)
    assert send_error == {"type": "error", "code": 4009, "message": "reply_pending"}
    assert input_error == send_error
    assert done["awaitingReply"] is False
    assert done["input"] == ""
    assert done["messages"][-1] == {"sender": "bot", "text": "done"}
    assert service.calls == ["first"]


def test_reply_failure_shows_fallback(reply_service):
    reply_service.error = ReplyServiceError("connection refused")

    async def scenario(ws):
        await ws.send_json_to({"type": "send", "content": "hello"})
        await ws.receive_json_from()
        return await ws.receive_json_from()

    done = run(scenario)
    assert done["messages"][-1] == {"sender": "bot", "text": FALLBACK_REPLY}
    assert done["awaitingReply"] is False


def test_resend_and_auto_speak_via_browser(reply_service):
    async def scenario(ws):
        await ws.send_json_to({"type": "send", "content": "X"})
        await ws.receive_json_from()
        await ws.receive_json_from()
        spoken = await ws.receive_json_from()
        await ws.send_json_to({"type": "toggle_auto_speak"})
        toggled = await ws.receive_json_from()
        await ws.send_json_to({"type": "resend"})
        await ws.receive_json_from()
        final = await ws.receive_json_from()
        assert await ws.receive_nothing()
        return spoken, toggled, final

    spoken, toggled, final = run(scenario, {"synthesis": True})
    assert spoken == {"type": "speak", "text": "9am-5pm", "lang": "en-US"}
    assert toggled["autoSpeak"] is False
    assert [m["text"] for m in final["messages"] if m["sender"] == "user"] == ["X", "X"]
    assert reply_service.calls == ["X", "X"]


def test_voice_capture_relayed_to_browser(reply_service):
    async def scenario(ws):
        await ws.send_json_to({"type": "capture"})
        start = await ws.receive_json_from()
        await ws.send_json_to({"type": "capture.result", "transcript": "where is the pharmacy"})
        state = await ws.receive_json_from()
        return start, state

    start, state = run(scenario, {"recognition": True})
    assert start == {"type": "capture.start", "lang": "en-US"}
    assert state["input"] == "where is the pharmacy"
    assert len(state["messages"]) == 1
    assert reply_service.calls == []


def test_voice_capture_error_keeps_input(reply_service):
    async def scenario(ws):
        await ws.send_json_to({"type": "input", "content": "typed"})
        await ws.receive_json_from()
        await ws.send_json_to({"type": "capture"})
        await ws.receive_json_from()
        await ws.send_json_to({"type": "capture.error", "error": "not-allowed"})
        return await ws.receive_json_from()

    state = run(scenario, {"recognition": True})
    assert state["input"] == "typed"
    assert state["capturing"] is False


def test_capture_without_recognition_is_refused(reply_service):
    async def scenario(ws):
        await ws.send_json_to({"type": "capture"})
        return await ws.receive_json_from()

    assert run(scenario) == {"type": "error", "code": 4011, "message": "speech_unavailable"}


@pytest.mark.parametrize("frame, code, message", [
    ("not json", 4000, "invalid_json"),
    ("[1, 2]", 4001, "invalid_payload"),
    ('{"type": "shout"}', 4002, "unsupported_type"),
    ('{"type": "send", "content": 5}', 4003, "invalid_content_type"),
    ('{"type": "send", "content": "   "}', 4004, "empty_message"),
    ('{"type": "send", "content": "<b></b>"}', 4004, "empty_message"),
    ('{"type": "resend"}', 4010, "nothing_to_resend"),
    ('{"type": "capture.result", "transcript": "hi"}', 4013, "no_active_capture"),
])
def test_protocol_errors(reply_service, frame, code, message):
    async def scenario(ws):
        await ws.send_to(text_data=frame)
        return await ws.receive_json_from()

    assert run(scenario) == {"type": "error", "code": code, "message": message}


def test_message_too_long(reply_service, settings):
    settings.CHAT_MAX_MESSAGE_LENGTH = 10

    async def scenario(ws):
        await ws.send_json_to({"type": "send", "content": "x" * 11})
        return await ws.receive_json_from()

    assert run(scenario)["code"] == 4005
