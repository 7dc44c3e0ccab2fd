"""Render reply text as a TwiML document."""

from __future__ import annotations

_XML_ESCAPES = {
    "<": "&lt;",
    ">": "&gt;",
    "&": "&amp;",
    "'": "&apos;",
    '"': "&quot;",
}
_ESCAPE_TABLE = str.maketrans(_XML_ESCAPES)

ELLIPSIS = "..."
DEFAULT_MAX_LENGTH = 1200


def xml_escape(text: str | None) -> str:
    return str(text or "").translate(_ESCAPE_TABLE)


def clamp(text: str, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """Cut *text* to *max_length* characters, ending with an ellipsis when cut."""
    if len(text) <= max_length:
        return text
    return text[: max_length - len(ELLIPSIS)] + ELLIPSIS


def build_twiml(message: str) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        "<Response>\n"
        f"  <Message>{xml_escape(message)}</Message>\n"
        "</Response>"
    )


class ResponseFormatter:
    """Clamps and escapes the final answer for the messaging gateway."""

    def __init__(self, max_length: int = DEFAULT_MAX_LENGTH):
        self._max_length = max_length

    @property
    def max_length(self) -> int:
        return self._max_length

    def clamp(self, text: str) -> str:
        return clamp(text, self._max_length)

    def render(self, text: str) -> str:
        return build_twiml(self.clamp(text))
