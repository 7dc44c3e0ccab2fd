"""Build the contextual prompt from stored history and the new message."""

from __future__ import annotations

from collections.abc import Sequence

from sms_assistant.storage.models import ConversationEntry

DEFAULT_CONTEXT_LENGTH = 1000
TRUNCATION_MARKER = "\n\n[Previous conversation context included]"


def build_context(history: Sequence[ConversationEntry], max_len: int = DEFAULT_CONTEXT_LENGTH) -> str:
    """Render history as alternating User/Assistant lines, oldest first.

    When the rendered text exceeds *max_len* only its tail is kept, so the most
    recent exchanges survive, and a marker is appended.
    """
    if not history:
        return ""

    context = "\n\n".join(
        f"User: {entry.user_message}\nAssistant: {entry.ai_response}" for entry in history
    )
    if len(context) > max_len:
        return context[-max_len:] + TRUNCATION_MARKER
    return context


def build_prompt(context: str, user_message: str) -> str:
    if not context:
        return user_message
    return f"Previous conversation:\n{context}\n\nCurrent message: {user_message}"


def build_synthesis_prompt(formatted_results: str, user_message: str) -> str:
    """Prompt for the second generation call, after a web search ran."""
    results = formatted_results or "No results found."
    return (
        "Web search results:\n"
        f"{results}\n\n"
        "Using the search results above where they are relevant, answer this message: "
        f"{user_message}"
    )
