"""Chat messages and the in-memory transcript of a session."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional

SENDER_USER = 'user'
SENDER_BOT = 'bot'
SENDERS = (SENDER_USER, SENDER_BOT)

GREETING = "Hello! I'm here to help with any questions about our hospital. How can I assist you today?"
FALLBACK_REPLY = "Sorry, there was an error processing your query."


@dataclass(frozen=True)
class Message:
    sender: str
    text: str

    def __post_init__(self):
        if self.sender not in SENDERS:
            raise ValueError(f"unknown sender: {self.sender!r}")

    @property
    def is_bot(self) -> bool:
        return self.sender == SENDER_BOT

    def as_dict(self) -> dict:
        return {'sender': self.sender, 'text': self.text}


class Transcript:
    """Append-only list of messages in conversation order.

    Messages are never reordered, replaced or deduplicated; position is
    the only identity a message has.
    """

    def __init__(self, greeting: Optional[str] = GREETING):
        self._messages: List[Message] = []
        if greeting:
            self._messages.append(Message(SENDER_BOT, greeting))

    def append(self, message: Message) -> Message:
        self._messages.append(message)
        return message

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(list(self._messages))

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]

    def since(self, position: int) -> List[Message]:
        return self._messages[position:]

    def as_list(self) -> List[dict]:
        return [m.as_dict() for m in self._messages]
