"""
Prize sequencer.

Lots are played in groups of three: lot 1 for a line, lot 2 for a double
line, lot 3 for a full card, then lots 4-6, and so on. The cursor only
ever moves forward:

    (g, line) → (g, double_line) → (g, full_card) → (g + 3, line)

Whoever wins (a local card or someone else in the hall) moves it on.
Clearing the called numbers after a full card is the caller's job; this
class only reports when it is due.
"""

import logging
from collections.abc import Sequence

from lotoquine.models.prize import PrizeCursor, PrizeEntry
from lotoquine.models.win import WinEvent, WinTier

logger = logging.getLogger(__name__)

GROUP_SIZE = 3


class PrizeSequencer:
    """Finite-state cursor over a prize list."""

    def __init__(self, prizes: Sequence[PrizeEntry] = ()) -> None:
        self._prizes: list[PrizeEntry] = list(prizes)
        self._cursor = PrizeCursor()

    @property
    def cursor(self) -> PrizeCursor:
        return self._cursor

    @property
    def prizes(self) -> list[PrizeEntry]:
        return list(self._prizes)

    def select_list(self, prizes: Sequence[PrizeEntry]) -> None:
        """Switch to a new prize list and go back to the first lot."""
        self._prizes = list(prizes)
        self._cursor = PrizeCursor()

    def _prize_at(self, index: int) -> PrizeEntry | None:
        if 0 <= index < len(self._prizes):
            return self._prizes[index]
        return None

    def current_prize(self) -> PrizeEntry | None:
        """Lot being played, None when the list is empty or exhausted."""
        return self._prize_at(self._cursor.list_index)

    def expected_lot_number(self) -> int:
        """Lot number being played, even if the list lacks it."""
        return self._cursor.expected_lot_number

    def next_prize(self) -> PrizeEntry | None:
        """Lot that `advance()` would move to, for previews."""
        return self._prize_at(self._advanced(self._cursor).list_index)

    def is_last_tier_in_group(self) -> bool:
        return self._cursor.tier is WinTier.FULL_CARD

    @staticmethod
    def _advanced(cursor: PrizeCursor) -> PrizeCursor:
        next_tier = cursor.tier.next()
        if next_tier is None:
            return PrizeCursor(group_index=cursor.group_index + GROUP_SIZE, tier=WinTier.LINE)
        return PrizeCursor(group_index=cursor.group_index, tier=next_tier)

    def advance(self) -> PrizeCursor:
        """Move to the next tier, or to the next group after a full card."""
        self._cursor = self._advanced(self._cursor)
        return self._cursor

    def next_group(self) -> PrizeCursor:
        """Jump to the line lot of the next group."""
        self._cursor = PrizeCursor(group_index=self._cursor.group_index + GROUP_SIZE, tier=WinTier.LINE)
        return self._cursor

    def claimed_by_other(self) -> bool:
        """
        Someone else in the hall won the current lot.

        Returns:
            True when the full card was claimed: the called numbers must
            then be cleared by the caller before the next group starts.
        """
        if self.is_last_tier_in_group():
            self.next_group()
            return True
        self.advance()
        return False

    def on_win(self, event: WinEvent) -> None:
        """
        Advance for a local win of the tier being played.

        Wins of other tiers (or a second card winning the same tier on the
        same call) do not move the cursor.
        """
        if event.tier is not self._cursor.tier:
            logger.debug(
                "win_ignored_by_sequencer",
                extra={"tier": event.tier.value, "cursor_tier": self._cursor.tier.value},
            )
            return
        self.advance()
