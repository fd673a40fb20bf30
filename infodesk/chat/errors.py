"""Error types raised by chat session collaborators.

Neither error escapes the controller: reply failures turn into a
fallback bot message and speech failures are logged.
"""


class ReplyServiceError(Exception):
    """Network failure, timeout or bad response from the reply endpoint."""


class SpeechCapabilityError(Exception):
    """The speech platform failed during a capture or playback."""
