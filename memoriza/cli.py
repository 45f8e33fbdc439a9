import argparse
import asyncio
import logging
import os
import sys
from typing import Callable, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from memoriza.models import Difficulty, Flashcard, GenerateFlashcardsRequest, to_flashcards
from memoriza.services import upstream_client
from memoriza.services.deck import CardDeck, summarize_sets
from memoriza.utils import difficulty_label, format_date, format_datetime, html_to_text

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

HELP_LINE = "[n]ext  [p]revious  [f]lip  [r]estart  [q]uit"

logger = logging.getLogger(__name__)


def _setup_logging():
    level = os.environ.get("LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(level=getattr(logging, level, logging.WARNING), format=LOG_FORMAT)


def _token(args: argparse.Namespace) -> str:
    token = args.token or os.environ.get("MEMORIZA_TOKEN", "")
    if not token:
        raise SystemExit("--token or MEMORIZA_TOKEN is required")
    return token


def render_card(deck: CardDeck) -> str:
    card = deck.current
    if card is None:
        return "No flashcards."
    side = "Answer" if deck.flipped else "Question"
    body = html_to_text(card.answer) if deck.flipped else card.question
    return f"Card {deck.position_label} - {side}\n\n{body}\n"


def study(
    deck: CardDeck,
    read: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
) -> None:
    """Interactive loop over a deck until the user quits or input ends."""
    if not len(deck):
        write("No flashcards found for this set.")
        return

    write(render_card(deck))
    while True:
        try:
            key = read(f"{HELP_LINE} > ").strip().lower()
        except EOFError:
            return
        if key == "q":
            return
        if key == "n":
            if not deck.has_next:
                write("Already at the last card.")
                continue
            deck.next()
        elif key == "p":
            if not deck.has_previous:
                write("Already at the first card.")
                continue
            deck.previous()
        elif key == "f":
            deck.flip()
        elif key == "r":
            deck.restart()
        else:
            continue
        write(render_card(deck))


def _study_cards(cards: list[Flashcard], wrap: bool):
    study(CardDeck(sorted(cards, key=lambda c: c.card_order), wrap=wrap))


def _cmd_generate(args: argparse.Namespace) -> int:
    request = GenerateFlashcardsRequest(topic=args.topic, difficulty=args.difficulty)
    response = asyncio.run(upstream_client.generate_flashcards(request, _token(args)))
    cards = to_flashcards(response, request.topic)
    print(
        f"Created {len(cards)} flashcards for \"{request.topic}\" "
        f"with difficulty {difficulty_label(request.difficulty.value)}\n"
    )
    _study_cards(cards, args.wrap)
    return 0


def _cmd_sets(args: argparse.Namespace) -> int:
    sets = asyncio.run(upstream_client.get_user_flashcard_sets(args.user, _token(args)))
    summary = summarize_sets(sets, args.search)
    last = format_datetime(summary.last_studied) if summary.last_studied else "Never"
    print(f"Sets: {summary.total_sets}  Flashcards: {summary.total_flashcards}  Last study: {last}")
    if not summary.sets:
        print("No results found." if args.search else "No flashcards found.")
        return 0
    for s in summary.sets:
        created = f", created {format_date(s.created_at)}" if s.created_at else ""
        print(f"  {s.id}  {s.topic}  ({s.flashcard_count} cards{created})")
    return 0


def _cmd_study(args: argparse.Namespace) -> int:
    cards = asyncio.run(upstream_client.get_flashcards_by_set_id(args.set, _token(args)))
    _study_cards(cards, args.wrap)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    load_dotenv()
    _setup_logging()

    parser = argparse.ArgumentParser(
        prog="memoriza-study", description="Generate and study medical flashcards"
    )
    parser.add_argument("--token", help="Bearer token for the flashcard service")
    sub = parser.add_subparsers(dest="cmd", required=True)

    g = sub.add_parser("generate", help="Generate a flashcard set for a topic and study it")
    g.add_argument("--topic", "-t", required=True)
    g.add_argument(
        "--difficulty",
        "-d",
        choices=[d.value for d in Difficulty],
        default=Difficulty.INTERMEDIATE.value,
    )
    g.add_argument("--wrap", action="store_true", help="Cycle past the last card")

    s = sub.add_parser("sets", help="List a user's flashcard sets")
    s.add_argument("--user", "-u", required=True)
    s.add_argument("--search", default="", help="Topic prefix filter")

    st = sub.add_parser("study", help="Study an existing flashcard set")
    st.add_argument("--set", required=True, help="Flashcard set id")
    st.add_argument("--wrap", action="store_true", help="Cycle past the last card")

    args = parser.parse_args(argv)
    commands = {"generate": _cmd_generate, "sets": _cmd_sets, "study": _cmd_study}
    try:
        return commands[args.cmd](args)
    except (upstream_client.UpstreamError, upstream_client.UpstreamConnectionError) as err:
        logger.error("%s failed: %s", args.cmd, err)
        print(f"Error: {err}", file=sys.stderr)
        return 1
    except ValidationError as err:
        message = "; ".join(e["msg"] for e in err.errors())
        logger.error("%s rejected: %s", args.cmd, message)
        print(f"Error: {message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
