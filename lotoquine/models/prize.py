from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Generic, TypeVar

from lotoquine.models.win import WinTier

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class PrizeEntry:
    """
    One lot of a prize list.

    The tier is the one READ from the source text. It may disagree with the
    tier implied by the lot number in the Q → DQ → CP cycle; the read value
    is kept.

    Attributes:
        lot_number: Lot number (1-based)
        tier: Tier required to win the lot
        description: Prize description
        synthesized: True when the entry was filled in for a missed detection
    """

    lot_number: int
    tier: WinTier
    description: str
    synthesized: bool = False


@dataclass(frozen=True, slots=True)
class PrizeCursor:
    """
    Position in a prize list.

    Attributes:
        group_index: Index of the first lot of the current group (0, 3, 6...)
        tier: Tier currently being played inside the group
    """

    group_index: int = 0
    tier: WinTier = WinTier.LINE

    @property
    def list_index(self) -> int:
        return self.group_index + self.tier.offset

    @property
    def expected_lot_number(self) -> int:
        """Lot number being played, whether or not the list contains it."""
        return self.list_index + 1


@dataclass
class Tirage:
    """
    A tirage (loto event) listed on lotofiesta.fr.

    Attributes:
        id: Slug of the product page
        title: Event name (e.g. "AS MURET FOOTBALL")
        date: Event date as printed (e.g. "VENDREDI 26 DÉCEMBRE")
        url: Product page URL
        image_url: Poster image URL
        prizes_image_url: Image of the prize list, once located
        prizes: Parsed prize list, empty until loaded
    """

    id: str
    title: str
    date: str
    url: str
    image_url: str = ""
    prizes_image_url: str | None = None
    prizes: list[PrizeEntry] = field(default_factory=list)


@dataclass(frozen=True)
class TirageCache(Generic[T]):
    """
    Explicit cache entry owned by the calling layer.

    Replaces a process-wide cache: whoever fetches keeps the value and
    passes it back in.
    """

    value: T
    fetched_at: datetime

    def is_fresh(self, ttl_seconds: int, now: datetime | None = None) -> bool:
        now = now or datetime.now(UTC)
        return now - self.fetched_at < timedelta(seconds=ttl_seconds)
