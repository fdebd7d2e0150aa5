from dataclasses import dataclass

from lotoquine.models.win import WinTier


@dataclass(frozen=True, slots=True)
class CardProgress:
    """
    Progress of one card against the called numbers.

    Derived value: always a pure function of (card, called numbers),
    recomputed on demand and never persisted.

    Attributes:
        card_id: Card this progress belongs to
        board_id: Board holding the card
        marked_numbers: Card numbers already called, ascending
        lines_progress: Marked count per row
        lines_completed: Whether each row is complete
        missing_for_line: Numbers still needed for a first line
        missing_for_double_line: Numbers still needed for two lines
        missing_for_full_card: Card numbers not yet called
    """

    card_id: str
    board_id: str
    marked_numbers: tuple[int, ...]
    lines_progress: tuple[int, int, int]
    lines_completed: tuple[bool, bool, bool]
    missing_for_line: tuple[int, ...]
    missing_for_double_line: tuple[int, ...]
    missing_for_full_card: tuple[int, ...]

    @property
    def completed_lines(self) -> int:
        return sum(self.lines_completed)

    @property
    def is_full(self) -> bool:
        return not self.missing_for_full_card

    def missing_for(self, tier: WinTier) -> tuple[int, ...]:
        """Numbers still needed for a tier."""
        if tier is WinTier.LINE:
            return self.missing_for_line
        if tier is WinTier.DOUBLE_LINE:
            return self.missing_for_double_line
        return self.missing_for_full_card
