import html
import re
from datetime import datetime

from memoriza.models import Difficulty

DIFFICULTY_LABELS = {
    Difficulty.BEGINNER.value: "Iniciante",
    Difficulty.INTERMEDIATE.value: "Intermediário",
    Difficulty.ADVANCED.value: "Avançado",
}

_BLOCK_TAGS = re.compile(r"</?(p|div|br|ol|ul|h[1-6])\s*/?>", re.IGNORECASE)
_LIST_ITEM = re.compile(r"<li[^>]*>", re.IGNORECASE)
_ANY_TAG = re.compile(r"<[^>]+>")


def difficulty_label(difficulty: str) -> str:
    """Display label for a difficulty, falling back to the raw value."""
    return DIFFICULTY_LABELS.get(str(difficulty), str(difficulty))


def _parse(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def format_date(value: str) -> str:
    """Format an ISO timestamp as dd/mm/yyyy."""
    return _parse(value).strftime("%d/%m/%Y")


def format_datetime(value: str) -> str:
    """Format an ISO timestamp as dd/mm/yyyy, HH:MM."""
    return _parse(value).strftime("%d/%m/%Y, %H:%M")


def html_to_text(markup: str) -> str:
    """Flatten a card's rich-text answer for terminal display.

    Args:
        markup: HTML as returned by the upstream (paragraphs, lists, bold)

    Returns:
        Plain text with one line per block and "- " before list items
    """
    text = _LIST_ITEM.sub("\n- ", markup)
    text = _BLOCK_TAGS.sub("\n", text)
    text = html.unescape(_ANY_TAG.sub("", text))
    lines = (" ".join(line.split()) for line in text.splitlines())
    return "\n".join(line for line in lines if line)
