"""
Game history and global statistics.
"""

import uuid
from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime

from lotoquine.models.card import Board
from lotoquine.models.draw import CalledNumberSequence
from lotoquine.models.history import GameHistory, GameHistoryWin, GlobalStats
from lotoquine.models.win import WinEvent, WinTier

UNKNOWN_BOARD_NAME = "Unknown board"


def build_game_history(
    boards: Sequence[Board],
    sequence: CalledNumberSequence,
    wins: Iterable[WinEvent],
    started_at: datetime | None,
    now: datetime | None = None,
) -> GameHistory | None:
    """
    Snapshot of a finished round.

    Returns:
        The history entry, or None when no number was called.
    """
    if not sequence:
        return None

    now = now or datetime.now(UTC)
    duration = round((now - started_at).total_seconds()) if started_at else 0
    board_names = {board.id: board.name for board in boards}

    history_wins = tuple(
        GameHistoryWin(
            tier=win.tier,
            card_position=win.position,
            board_name=board_names.get(win.board_id, UNKNOWN_BOARD_NAME),
            at_called_number=win.at_called_number,
            at_call_count=win.order,
            card_serial_number=win.serial_number,
        )
        for win in wins
    )

    return GameHistory(
        id=str(uuid.uuid4()),
        date=now,
        board_ids=tuple(board.id for board in boards),
        board_names=tuple(board.name for board in boards),
        called_numbers=tuple(sequence.ordered_numbers()),
        wins=history_wins,
        duration_seconds=duration,
    )


def _first_win_counts(histories: Iterable[GameHistory], tier: WinTier) -> list[int]:
    """Call count of the first win of `tier` in each round that had one."""
    counts: list[int] = []
    for history in histories:
        tier_counts = [win.at_call_count for win in history.wins if win.tier is tier]
        if tier_counts:
            counts.append(min(tier_counts))
    return counts


def compute_global_stats(histories: Sequence[GameHistory]) -> GlobalStats:
    """Aggregate statistics over recorded rounds."""
    stats = GlobalStats(total_games=len(histories))
    if not histories:
        return stats

    tier_totals = Counter(win.tier for history in histories for win in history.wins)
    stats.total_lines = tier_totals[WinTier.LINE]
    stats.total_double_lines = tier_totals[WinTier.DOUBLE_LINE]
    stats.total_full_cards = tier_totals[WinTier.FULL_CARD]
    stats.total_calls = sum(history.total_calls for history in histories)

    frequency = Counter(number for history in histories for number in history.called_numbers)
    stats.number_frequency = dict(sorted(frequency.items()))

    to_line = _first_win_counts(histories, WinTier.LINE)
    if to_line:
        stats.average_calls_to_line = sum(to_line) / len(to_line)
        stats.fastest_line = min(to_line)

    to_full = _first_win_counts(histories, WinTier.FULL_CARD)
    if to_full:
        stats.average_calls_to_full_card = sum(to_full) / len(to_full)
        stats.fastest_full_card = min(to_full)

    return stats
