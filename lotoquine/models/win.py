from dataclasses import dataclass
from enum import Enum


class WinTier(str, Enum):
    """
    Win tiers, also used as prize categories.

    Printed prize lists use the codes Q (quine), DQ (double quine)
    and CP (carton plein).
    """

    LINE = "line"
    DOUBLE_LINE = "double_line"
    FULL_CARD = "full_card"

    @property
    def code(self) -> str:
        return _TIER_CODES[self]

    @property
    def offset(self) -> int:
        """Position of the tier inside a group of three lots."""
        return _TIER_ORDER.index(self)

    @classmethod
    def from_code(cls, code: str) -> "WinTier":
        """
        Tier for a printed code, case-insensitive.

        Raises:
            ValueError: If the code is not Q, DQ or CP
        """
        upper = code.strip().upper()
        for tier, tier_code in _TIER_CODES.items():
            if tier_code == upper:
                return tier
        raise ValueError(f"Unknown tier code: {code!r}")

    @classmethod
    def from_offset(cls, offset: int) -> "WinTier":
        return _TIER_ORDER[offset % 3]

    @classmethod
    def for_lot_number(cls, lot_number: int) -> "WinTier":
        """Tier implied by the Q → DQ → CP cycle for a 1-based lot number."""
        return cls.from_offset(lot_number - 1)

    def next(self) -> "WinTier | None":
        """Next tier in the group, None after full card."""
        if self is WinTier.FULL_CARD:
            return None
        return _TIER_ORDER[self.offset + 1]


_TIER_ORDER: tuple[WinTier, ...] = (WinTier.LINE, WinTier.DOUBLE_LINE, WinTier.FULL_CARD)

_TIER_CODES: dict[WinTier, str] = {
    WinTier.LINE: "Q",
    WinTier.DOUBLE_LINE: "DQ",
    WinTier.FULL_CARD: "CP",
}


@dataclass(frozen=True, slots=True)
class WinEvent:
    """
    A win of one tier on one card.

    Emitted at most once per (card, tier) per game. Fully derived from the
    called-number log: undoing `at_called_number` retracts the event.

    Attributes:
        card_id: Winning card
        board_id: Board holding the card
        tier: Tier won
        at_called_number: Number whose call triggered the win
        order: Order of that call in the sequence (1-based)
        position: Card position on its board (1-12)
        serial_number: Card serial for phone-in verification, if known
    """

    card_id: str
    board_id: str
    tier: WinTier
    at_called_number: int
    order: int
    position: int
    serial_number: str | None = None
