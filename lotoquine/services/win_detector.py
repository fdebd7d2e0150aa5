"""
Win detection.

Compares a card's progress just before and just after a call and emits
the wins the call produced, in fixed precedence:

    line → double_line → full_card

Each transition is gated independently, so one call can produce several
events (e.g. the last number of the card completes two rows at once).

INVARIANT: wins are derived from the called-number log. Replaying the
log with `replay_wins` always reproduces the win ledger, and undoing a
call retracts exactly the wins it triggered.
"""

import logging
from collections.abc import Iterable, Sequence, Set

from lotoquine.models.card import Board, Card
from lotoquine.models.draw import CalledNumberSequence
from lotoquine.models.failure import report_invariant_violation
from lotoquine.models.win import WinEvent, WinTier
from lotoquine.services.card_progress import compute_progress

logger = logging.getLogger(__name__)


def detect_wins(
    card: Card,
    before: Set[int],
    after: Set[int],
    triggering_number: int,
    order: int,
    board_id: str = "",
) -> list[WinEvent]:
    """
    Wins produced on `card` by the call of `triggering_number`.

    Args:
        card: Card to check
        before: Called numbers before the call
        after: Called numbers after the call
        triggering_number: The number just called
        order: Order of that call in the sequence (1-based)
        board_id: Board holding the card

    Returns:
        New win events, in precedence order. Empty when nothing changed.
    """
    previous = compute_progress(card, before, board_id)
    current = compute_progress(card, after, board_id)

    tiers: list[WinTier] = []
    if previous.completed_lines < 1 <= current.completed_lines:
        tiers.append(WinTier.LINE)
    if previous.completed_lines < 2 <= current.completed_lines:
        tiers.append(WinTier.DOUBLE_LINE)
    if previous.missing_for_full_card and not current.missing_for_full_card:
        tiers.append(WinTier.FULL_CARD)

    events = [
        WinEvent(
            card_id=card.id,
            board_id=board_id,
            tier=tier,
            at_called_number=triggering_number,
            order=order,
            position=card.display_position,
            serial_number=card.serial_number,
        )
        for tier in tiers
    ]

    for event in events:
        logger.debug(
            "win_transition",
            extra={
                "card_id": event.card_id,
                "board_id": event.board_id,
                "tier": event.tier.value,
                "at_called_number": event.at_called_number,
                "call_order": event.order,
            },
        )

    return events


def detect_board_wins(
    boards: Iterable[Board],
    before: Set[int],
    after: Set[int],
    triggering_number: int,
    order: int,
) -> list[WinEvent]:
    """Wins produced by one call on every card of every board."""
    return [
        event
        for board in boards
        for card in board.cards
        for event in detect_wins(card, before, after, triggering_number, order, board.id)
    ]


def retract_wins(wins: Sequence[WinEvent], number: int) -> list[WinEvent]:
    """Wins that remain once the call of `number` is undone."""
    return [event for event in wins if event.at_called_number != number]


def retract_event(wins: Sequence[WinEvent], event: WinEvent) -> list[WinEvent]:
    """
    Remove one specific event from a win ledger.

    Asking to retract an event that is not in the ledger means the ledger
    drifted from the called-number log: an invariant violation.
    """
    if event not in wins:
        report_invariant_violation(
            "Retracting a win that was never recorded",
            card_id=event.card_id,
            tier=event.tier.value,
            at_called_number=event.at_called_number,
        )
        return list(wins)
    return [existing for existing in wins if existing != event]


def replay_wins(boards: Sequence[Board], sequence: CalledNumberSequence) -> list[WinEvent]:
    """Derive the whole win ledger from the called-number log."""
    wins: list[WinEvent] = []
    called: set[int] = set()

    for call in sequence.calls:
        before = frozenset(called)
        called.add(call.number)
        wins.extend(detect_board_wins(boards, before, frozenset(called), call.number, call.order))

    return wins
