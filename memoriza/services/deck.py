from datetime import datetime
from typing import Optional

from memoriza.models import DashboardSummary, Flashcard, FlashcardSet


class CardDeck:
    """Navigation and flip state for studying one set of cards.

    With `wrap` the deck cycles (next on the last card goes to the first);
    without it navigation stops at either end.
    """

    def __init__(self, cards: list[Flashcard], wrap: bool = False):
        self.cards = list(cards)
        self.wrap = wrap
        self.index = 0
        self.flipped = False

    def __len__(self) -> int:
        return len(self.cards)

    @property
    def current(self) -> Optional[Flashcard]:
        if not self.cards:
            return None
        return self.cards[self.index]

    @property
    def has_next(self) -> bool:
        if not self.cards:
            return False
        return self.wrap or self.index < len(self.cards) - 1

    @property
    def has_previous(self) -> bool:
        if not self.cards:
            return False
        return self.wrap or self.index > 0

    @property
    def position_label(self) -> str:
        if not self.cards:
            return "0 / 0"
        return f"{self.index + 1} / {len(self.cards)}"

    @property
    def progress(self) -> float:
        if not self.cards:
            return 0.0
        return (self.index + 1) / len(self.cards)

    def _go_to(self, index: int):
        if index != self.index:
            self.flipped = False
        self.index = index

    def next(self) -> Optional[Flashcard]:
        if self.has_next:
            self._go_to((self.index + 1) % len(self.cards))
        return self.current

    def previous(self) -> Optional[Flashcard]:
        if self.has_previous:
            self._go_to((self.index - 1) % len(self.cards))
        return self.current

    def restart(self) -> Optional[Flashcard]:
        self._go_to(0)
        self.flipped = False
        return self.current

    def flip(self) -> bool:
        if self.cards:
            self.flipped = not self.flipped
        return self.flipped


def filter_sets_by_topic(sets: list[FlashcardSet], term: str) -> list[FlashcardSet]:
    """Sets whose topic starts with `term`, ignoring case."""
    prefix = term.lower()
    return [s for s in sets if s.topic.lower().startswith(prefix)]


def _parse_timestamp(value: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def summarize_sets(sets: list[FlashcardSet], search: str = "") -> DashboardSummary:
    """Totals across all of a user's sets, plus the sets matching `search`."""
    latest: Optional[datetime] = None
    latest_raw: Optional[str] = None
    for s in sets:
        stamp = _parse_timestamp(s.updated_at)
        if stamp is None:
            continue
        if latest is None or stamp.timestamp() > latest.timestamp():
            latest, latest_raw = stamp, s.updated_at

    return DashboardSummary(
        total_sets=len(sets),
        total_flashcards=sum(s.flashcard_count for s in sets),
        last_studied=latest_raw,
        sets=filter_sets_by_topic(sets, search),
    )
