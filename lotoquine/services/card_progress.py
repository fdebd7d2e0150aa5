"""
Card progress engine.

Computes, for one card and the set of called numbers, how far each row
is and which numbers are still needed for each win tier.

INVARIANT: `compute_progress` is a pure function. Same card and same
called set → identical CardProgress, whatever happened before.
"""

from collections.abc import Iterable, Set

from lotoquine.models.card import Board, Card
from lotoquine.models.progress import CardProgress
from lotoquine.models.win import WinTier


def _row_is_complete(row: tuple[int, ...], called: Set[int]) -> bool:
    # A printed row holds 5 numbers; an unbalanced plain-built row is
    # complete once all of its own numbers are called
    return bool(row) and all(n in called for n in row)


def compute_progress(card: Card, called: Set[int], board_id: str = "") -> CardProgress:
    """
    Progress of a card against the called numbers.

    - missing_for_line: empty once a row is complete; otherwise the
      missing numbers of the row closest to completion (lowest row
      index on ties).
    - missing_for_double_line: empty once two rows are complete;
      otherwise the missing numbers of the incomplete rows among the two
      best rows (highest count, lowest index on ties).
    - missing_for_full_card: card numbers not yet called.
    """
    rows = card.rows()
    marked = tuple(sorted(n for n in card.numbers if n in called))

    counts = tuple(sum(n in called for n in row) for row in rows)
    completed = tuple(_row_is_complete(row, called) for row in rows)
    completed_count = sum(completed)

    def missing_in(row_index: int) -> tuple[int, ...]:
        return tuple(n for n in rows[row_index] if n not in called)

    # Stable sort keeps row order on equal counts
    ranked_rows = sorted(range(len(rows)), key=lambda i: counts[i], reverse=True)

    missing_for_line: tuple[int, ...] = ()
    if completed_count < 1:
        missing_for_line = missing_in(ranked_rows[0])

    missing_for_double_line: tuple[int, ...] = ()
    if completed_count < 2:
        missing_for_double_line = tuple(
            n for i in ranked_rows[:2] if not completed[i] for n in missing_in(i)
        )

    return CardProgress(
        card_id=card.id,
        board_id=board_id,
        marked_numbers=marked,
        lines_progress=(counts[0], counts[1], counts[2]),
        lines_completed=(completed[0], completed[1], completed[2]),
        missing_for_line=missing_for_line,
        missing_for_double_line=missing_for_double_line,
        missing_for_full_card=tuple(n for n in card.numbers if n not in called),
    )


def compute_board_progress(boards: Iterable[Board], called: Set[int]) -> list[CardProgress]:
    """Progress of every card of every board, in board order."""
    return [compute_progress(card, called, board.id) for board in boards for card in board.cards]


def _closeness(progress: CardProgress) -> int:
    # Full card beats double line beats line at equal distance
    return min(
        len(progress.missing_for_full_card),
        len(progress.missing_for_double_line) + 10 if progress.missing_for_double_line else 10_000,
        len(progress.missing_for_line) + 20 if progress.missing_for_line else 10_000,
    )


def rank_best_cards(progress_list: Iterable[CardProgress]) -> list[CardProgress]:
    """Cards ordered from closest to farthest from their next win."""
    return sorted(progress_list, key=_closeness)


def one_remaining_alerts(progress_list: Iterable[CardProgress]) -> list[tuple[str, WinTier, int]]:
    """
    Cards one number away from a line or a full card.

    Returns:
        (card_id, tier, missing number) triples.
    """
    alerts: list[tuple[str, WinTier, int]] = []
    for progress in progress_list:
        if len(progress.missing_for_line) == 1:
            alerts.append((progress.card_id, WinTier.LINE, progress.missing_for_line[0]))
        if len(progress.missing_for_full_card) == 1:
            alerts.append((progress.card_id, WinTier.FULL_CARD, progress.missing_for_full_card[0]))
    return alerts
