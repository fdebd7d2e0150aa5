"""
Prize list parser.

Prize lists are published as an image and read by OCR. Expected shape:

    1 Q 1 Tablette SAMSUNG Galaxy A+
    2 DQ Bon d'achat 50 €
    3 CP Téléviseur 140 cm

<lot number> <tier code: Q | DQ | CP> [quantity] <description>

=============================================================================
PIPELINE
=============================================================================

Each stage is a pure function returning a PrizeParse:

1. parse_primary: line by line, anchored regex.
2. parse_flexible: whole text, unanchored "<n> <tier>" anchors. Used
   when the primary pass is not acceptable (fewer than 6 entries, or
   no lot #1).
3. choose_parse: picks the better of the two.
4. fill_gaps: synthesises entries for lots 1..max that were missed.

Gaps are always filled with placeholders. The tier READ in the text always wins over
the tier implied by the Q → DQ → CP cycle; disagreements are logged,
never corrected.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from lotoquine.config import (
    FLEXIBLE_MAX_LOT_NUMBER,
    GAP_FILL_WINDOW,
    MAX_PRIZE_DESCRIPTION_LENGTH,
    MIN_PRIMARY_PRIZE_ENTRIES,
)
from lotoquine.models.failure import Confidence
from lotoquine.models.prize import PrizeEntry
from lotoquine.models.text_source import TextSource, source_text
from lotoquine.models.win import WinTier

logger = logging.getLogger(__name__)

# Pattern: "1 Q 1 Tablette SAMSUNG" or "12 cp Bon d'achat 30 €"
# Groups: (lot_number, tier_code, description); optional quantity skipped
PRIMARY_LINE_PATTERN = re.compile(r"^(\d{1,2})\s+(DQ|CP|Q)\s+(?:\d+\s+)?(.+)$", re.IGNORECASE)

# Pattern: "<n> <tier> " anywhere in the text, number glued or spaced
FLEXIBLE_ANCHOR_PATTERN = re.compile(r"(?<![\d,.])(\d{1,2})\s*(DQ|CP|Q)(?=\s)", re.IGNORECASE)

# Amount: "50 €", "50,00€", "100 euros"
AMOUNT_PATTERN = re.compile(r"(\d+(?:[.,]\d{1,2})?)\s*(?:€|euros?\b|eur\b)", re.IGNORECASE)

GIFT_CARD_PATTERN = re.compile(
    r"bons?\s+d['’]\s*achats?|cartes?\s+cadeaux?|ch[eè]ques?\s+cadeaux?",
    re.IGNORECASE,
)

LEADING_QUANTITY_PATTERN = re.compile(r"^\d+\s+(?=\D)")

STRAY_CHARACTERS_PATTERN = re.compile(r"[|\\_]")
EDGE_PUNCTUATION = " \t-–—:;,.*•·"

MIN_DESCRIPTION_LENGTH = 3


class ParseStrategy(str, Enum):
    """Which pass produced a prize list."""

    PRIMARY = "primary"
    FLEXIBLE = "flexible"
    NONE = "none"


@dataclass(frozen=True)
class PrizeParse:
    """
    Result of one parsing stage.

    Attributes:
        entries: Prize entries sorted by lot number
        confidence: HIGH when the list looks complete, LOW when it needed
            fallbacks or placeholders, NONE when empty
        strategy: Pass that produced the entries
        gap_filled: Lot numbers synthesised by gap filling
    """

    entries: tuple[PrizeEntry, ...] = ()
    confidence: Confidence = Confidence.NONE
    strategy: ParseStrategy = ParseStrategy.NONE
    gap_filled: tuple[int, ...] = field(default_factory=tuple)

    @property
    def lot_numbers(self) -> list[int]:
        return [entry.lot_number for entry in self.entries]

    def __len__(self) -> int:
        return len(self.entries)


# =============================================================================
# HELPERS
# =============================================================================


def clean_description(text: str) -> str:
    """Remove OCR debris and collapse whitespace."""
    cleaned = STRAY_CHARACTERS_PATTERN.sub(" ", text)
    cleaned = re.sub(r"\s+", " ", cleaned)
    return cleaned.strip(EDGE_PUNCTUATION)


def truncate_description(text: str, limit: int = MAX_PRIZE_DESCRIPTION_LENGTH) -> str:
    """
    Shorten an over-long description.

    Cuts after the last amount ("50 €") ending within the limit when there
    is one, otherwise hard-truncates at the limit.
    """
    if len(text) <= limit:
        return text

    boundary = None
    for match in AMOUNT_PATTERN.finditer(text):
        if match.end() > limit:
            break
        boundary = match.end()

    if boundary is not None:
        return text[:boundary].rstrip()
    return text[:limit].rstrip()


def _log_tier_mismatch(lot_number: int, tier: WinTier) -> None:
    expected = WinTier.for_lot_number(lot_number)
    if tier is not expected:
        logger.info(
            "prize_tier_mismatch",
            extra={
                "lot_number": lot_number,
                "read_tier": tier.code,
                "expected_tier": expected.code,
            },
        )


def _sorted_entries(entries: dict[int, PrizeEntry]) -> tuple[PrizeEntry, ...]:
    return tuple(entries[lot] for lot in sorted(entries))


def is_acceptable(entries: tuple[PrizeEntry, ...]) -> bool:
    """A list is trusted when it has enough entries and starts at lot #1."""
    return len(entries) >= MIN_PRIMARY_PRIZE_ENTRIES and any(e.lot_number == 1 for e in entries)


def _confidence_for(entries: tuple[PrizeEntry, ...]) -> Confidence:
    if not entries:
        return Confidence.NONE
    return Confidence.HIGH if is_acceptable(entries) else Confidence.LOW


# =============================================================================
# PASSES
# =============================================================================


def parse_primary(text: str) -> PrizeParse:
    """
    Line-oriented pass.

    Every line matching "<lot> <tier> [qty] <description>" becomes an
    entry. The first line seen for a lot number wins.
    """
    entries: dict[int, PrizeEntry] = {}

    for line in text.splitlines():
        match = PRIMARY_LINE_PATTERN.match(line.strip())
        if not match:
            continue

        lot_number = int(match.group(1))
        if lot_number < 1 or lot_number in entries:
            continue

        description = clean_description(match.group(3))
        if len(description) < MIN_DESCRIPTION_LENGTH:
            continue

        tier = WinTier.from_code(match.group(2))
        _log_tier_mismatch(lot_number, tier)
        entries[lot_number] = PrizeEntry(lot_number=lot_number, tier=tier, description=description)

    result = _sorted_entries(entries)
    return PrizeParse(
        entries=result,
        confidence=_confidence_for(result),
        strategy=ParseStrategy.PRIMARY,
    )


def parse_flexible(text: str) -> PrizeParse:
    """
    Whole-text pass.

    Newlines are flattened, then every "<n> <tier>" with n in 1-24 is an
    anchor candidate. The first occurrence of each lot number anchors its
    entry; a description runs from the end of its anchor to the start of
    the next candidate in the text.
    """
    normalized = re.sub(r"\s+", " ", text).strip() + " "

    candidates = [
        m for m in FLEXIBLE_ANCHOR_PATTERN.finditer(normalized) if 1 <= int(m.group(1)) <= FLEXIBLE_MAX_LOT_NUMBER
    ]

    entries: dict[int, PrizeEntry] = {}
    for index, match in enumerate(candidates):
        lot_number = int(match.group(1))
        if lot_number in entries:
            continue

        end = candidates[index + 1].start() if index + 1 < len(candidates) else len(normalized)
        raw = LEADING_QUANTITY_PATTERN.sub("", normalized[match.end() : end].strip())
        description = truncate_description(clean_description(raw))
        if len(description) < MIN_DESCRIPTION_LENGTH:
            description = generic_description(lot_number)

        tier = WinTier.from_code(match.group(2))
        _log_tier_mismatch(lot_number, tier)
        entries[lot_number] = PrizeEntry(lot_number=lot_number, tier=tier, description=description)

    result = _sorted_entries(entries)
    return PrizeParse(
        entries=result,
        confidence=Confidence.LOW if result else Confidence.NONE,
        strategy=ParseStrategy.FLEXIBLE,
    )


def choose_parse(primary: PrizeParse, flexible: PrizeParse) -> PrizeParse:
    """
    Pick the result to keep.

    An acceptable primary pass always wins. Otherwise the flexible pass
    is used, unless it found fewer entries than the primary pass.
    """
    if is_acceptable(primary.entries):
        return primary
    if len(flexible) >= len(primary):
        return flexible
    return primary


# =============================================================================
# GAP FILLING
# =============================================================================


def generic_description(lot_number: int) -> str:
    return f"Lot n°{lot_number}"


def _describe_from_amount(window: str, lot_number: int) -> str:
    amount = AMOUNT_PATTERN.search(window)
    if not amount:
        return generic_description(lot_number)

    value = amount.group(1)
    if GIFT_CARD_PATTERN.search(window[: amount.start()]):
        return f"Bon d'achat de {value} €"
    return f"Lot de {value} €"


def _synthesize_entry(text: str, lot_number: int) -> PrizeEntry:
    """
    Entry for a lot the passes missed.

    Looks for "<lot> <tier>" in the text; when found, the tier is taken
    from it and the description from an amount shortly after. Otherwise
    the cyclic tier and a generic description are used.
    """
    anchor = re.search(rf"(?<![\d,.]){lot_number}\s*(DQ|CP|Q)\b", text, re.IGNORECASE)
    if anchor is None:
        return PrizeEntry(
            lot_number=lot_number,
            tier=WinTier.for_lot_number(lot_number),
            description=generic_description(lot_number),
            synthesized=True,
        )

    tier = WinTier.from_code(anchor.group(1))
    _log_tier_mismatch(lot_number, tier)
    window = text[anchor.end() : anchor.end() + GAP_FILL_WINDOW]
    return PrizeEntry(
        lot_number=lot_number,
        tier=tier,
        description=_describe_from_amount(window, lot_number),
        synthesized=True,
    )


def fill_gaps(parse: PrizeParse, raw_text: str) -> PrizeParse:
    """
    Add placeholder entries for every missing lot from 1 to the highest
    lot number found.
    """
    if not parse.entries:
        return parse

    entries = {entry.lot_number: entry for entry in parse.entries}
    highest = max(entries)
    normalized = re.sub(r"\s+", " ", raw_text)

    filled: list[int] = []
    for lot_number in range(1, highest + 1):
        if lot_number in entries:
            continue
        entries[lot_number] = _synthesize_entry(normalized, lot_number)
        filled.append(lot_number)

    if filled:
        logger.info(
            "prize_gap_filled",
            extra={"filled_lots": filled, "strategy": parse.strategy.value},
        )

    result = _sorted_entries(entries)
    return PrizeParse(
        entries=result,
        confidence=Confidence.LOW if filled else parse.confidence,
        strategy=parse.strategy,
        gap_filled=tuple(filled),
    )


# =============================================================================
# ENTRY POINT
# =============================================================================


def parse_prize_list(source: str | TextSource) -> PrizeParse:
    """
    Parse the OCR text of a prize list.

    Args:
        source: OCR output, as plain text or a TextSource

    Returns:
        PrizeParse with entries sorted by lot number. Empty input gives an
        empty result with Confidence.NONE.
    """
    text = source if isinstance(source, str) else source_text(source)
    if not text or not text.strip():
        return PrizeParse()

    primary = parse_primary(text)
    if is_acceptable(primary.entries):
        chosen = primary
    else:
        logger.info(
            "prize_primary_pass_rejected",
            extra={"entry_count": len(primary)},
        )
        chosen = choose_parse(primary, parse_flexible(text))

    return fill_gaps(chosen, text)
