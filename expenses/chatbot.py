from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Tuple

GREETING = (
    "Hello! I'm your expense assistant. Ask me anything about your expenses, "
    "like 'What did I spend on food this month?' or 'Show my highest expense'."
)
FAILURE_REPLY = "Sorry, I couldn't process your request. Please try again."

SUGGESTIONS = (
    "What did I spend on food this month?",
    "Show my highest expense",
    "How much have I spent in total?",
    "What are my top spending categories?",
)

BULLET = "•"


@dataclass(frozen=True)
class ChatMessage:
    text: str
    is_user: bool
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class FormattedReply:
    intro: str
    bullets: Tuple[str, ...] = ()


def start_transcript() -> Tuple[ChatMessage, ...]:
    return (ChatMessage(text=GREETING, is_user=False),)


def append_message(transcript: Tuple[ChatMessage, ...], text: str, is_user: bool) -> Tuple[ChatMessage, ...]:
    return transcript + (ChatMessage(text=text, is_user=is_user),)


def show_suggestions(transcript: Tuple[ChatMessage, ...]) -> bool:
    # hidden once the user has asked anything
    return not any(m.is_user for m in transcript)


def format_reply(text: str) -> FormattedReply:
    """Split a backend answer like "Top categories: • Food • Rent" into intro + bullets."""
    if BULLET not in text:
        return FormattedReply(intro=text.strip())
    parts: List[str] = text.split(BULLET)
    bullets = tuple(p.strip() for p in parts[1:] if p.strip())
    return FormattedReply(intro=parts[0].strip(), bullets=bullets)
