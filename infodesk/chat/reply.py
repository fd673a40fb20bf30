import requests
from typing import Optional
from django.conf import settings

from infodesk.chat.errors import ReplyServiceError


class ReplyClient:
    """HTTP client for the external chat reply service.

    Sends ``{"message": text}`` as JSON and expects ``{"reply": text}``
    back. Every failure mode is raised as :class:`ReplyServiceError`.
    """

    def __init__(self, url: Optional[str] = None, *, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        self.url = url or settings.CHAT_API_URL
        self.timeout = timeout or settings.CHAT_REPLY_TIMEOUT
        self.session = session or requests.Session()

    def send(self, message: str) -> str:
        try:
            r = self.session.post(
                self.url,
                json={'message': message},
                headers={'Content-Type': 'application/json'},
                timeout=self.timeout,
            )
            r.raise_for_status()
            data = r.json()
        except requests.Timeout as exc:
            raise ReplyServiceError(f"Reply service timed out after {self.timeout}s") from exc
        except requests.RequestException as exc:
            raise ReplyServiceError(f"Reply service call failed: {exc}") from exc
        except ValueError as exc:
            raise ReplyServiceError('Invalid response from reply service: body is not JSON') from exc

        reply = data.get('reply') if isinstance(data, dict) else None
        if not isinstance(reply, str):
            raise ReplyServiceError('Invalid response from reply service: missing reply')
        return reply

    def close(self) -> None:
        self.session.close()
