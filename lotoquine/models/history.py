"""
Game history records.

A history entry is written each time the called numbers are cleared
(new prize group) so finished rounds can be reviewed and aggregated.
"""

from dataclasses import dataclass, field
from datetime import datetime

from lotoquine.models.win import WinTier


@dataclass(frozen=True, slots=True)
class GameHistoryWin:
    """A win as recorded in history."""

    tier: WinTier
    card_position: int
    board_name: str
    at_called_number: int
    at_call_count: int
    card_serial_number: str | None = None


@dataclass(frozen=True)
class GameHistory:
    """
    One finished round.

    Attributes:
        id: History entry identifier
        date: When the round ended
        board_ids: Boards in play
        board_names: Their names, same order
        called_numbers: Numbers in call order
        wins: Wins of the round
        duration_seconds: Time from start to end of the round
    """

    id: str
    date: datetime
    board_ids: tuple[str, ...]
    board_names: tuple[str, ...]
    called_numbers: tuple[int, ...]
    wins: tuple[GameHistoryWin, ...]
    duration_seconds: int

    @property
    def total_calls(self) -> int:
        return len(self.called_numbers)


@dataclass
class GlobalStats:
    """Statistics aggregated over every recorded round."""

    total_games: int = 0
    total_lines: int = 0
    total_double_lines: int = 0
    total_full_cards: int = 0
    total_calls: int = 0
    average_calls_to_line: float = 0.0
    average_calls_to_full_card: float = 0.0
    fastest_line: int = 0
    fastest_full_card: int = 0
    number_frequency: dict[int, int] = field(default_factory=dict)
