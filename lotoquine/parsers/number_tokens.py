"""
Loto number extraction from OCR text.

OCR on a card photo returns the 15 printed numbers mixed with noise:
the brand watermark, the serial number, and numbers glued together when
the engine misses the gap between two cells ("263744" for 26 37 44).

Extraction is lenient: anything that is not a
valid loto number is dropped silently. Whether the result is good enough
is reported through a confidence signal, never an exception.
"""

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from lotoquine.config import DEFAULT_SERIAL_PREFIX, NUMBERS_PER_CARD
from lotoquine.models.card import is_valid_loto_number
from lotoquine.models.failure import Confidence
from lotoquine.models.text_source import TextSource, source_text

# Brand watermark printed on the cards, plus the ways OCR mangles it
WATERMARK_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"L\s*O\s*T\s*O\s*Q\s*U\s*I\s*N\s*E",
        r"LOTOOUINE",
        r"LOTOOLINE",
        r"I\s*OTOOLINE",
        r"I\s*OTOQUINE",
        r"LOTOQUIN",
    )
)

# Serial number: "30-0054", or "30 - 0054" when OCR splits it into tokens.
# Partial reads lose the first digit: "0-0054"
SERIAL_FULL_PATTERN = re.compile(r"(?<!\d)(\d{2})\s*-\s*(\d{4})(?!\d)")
SERIAL_PARTIAL_PATTERN = re.compile(r"(?<!\d)(\d)\s*-\s*(\d{4})(?!\d)")

DIGIT_RUN_PATTERN = re.compile(r"\d+")


@dataclass(frozen=True)
class NumberScan:
    """
    Numbers read from one card image.

    Attributes:
        numbers: Unique loto numbers, ascending
        serial_number: Card serial if one was found
        raw_text: Text the numbers were read from
        confidence: HIGH for exactly 15 numbers, LOW otherwise, NONE if empty
    """

    numbers: tuple[int, ...]
    serial_number: str | None
    raw_text: str
    confidence: Confidence

    @property
    def confidence_score(self) -> float:
        """0-100 score, as shown next to a scanned card."""
        if len(self.numbers) == NUMBERS_PER_CARD:
            return 98.0
        return min(len(self.numbers), NUMBERS_PER_CARD) / NUMBERS_PER_CARD * 100

    @property
    def needs_review(self) -> bool:
        return self.confidence is not Confidence.HIGH


def extract_serial_number(text: str) -> str | None:
    """
    Find the card serial number ("30-0054") in OCR text.

    When the first digit was lost ("0-0035"), the default series prefix
    is assumed.
    """
    match = SERIAL_FULL_PATTERN.search(text)
    if match:
        return f"{match.group(1)}-{match.group(2)}"

    match = SERIAL_PARTIAL_PATTERN.search(text)
    if match:
        return f"{DEFAULT_SERIAL_PREFIX}-{match.group(2)}"

    return None


def strip_noise(text: str, exclude_patterns: Iterable[str] = ()) -> str:
    """
    Blank out watermark text and caller-supplied literal substrings.

    Literal exclusions tolerate a missing or spaced dash, so the serial
    "30-0054" also removes "300054", "30 0054" and "30 - 0054".
    """
    cleaned = text
    for literal in exclude_patterns:
        if not literal:
            continue
        pattern = re.escape(literal).replace(r"\-", r"\s*-?\s*")
        cleaned = re.sub(pattern, " ", cleaned)

    for watermark in WATERMARK_PATTERNS:
        cleaned = watermark.sub(" ", cleaned)

    return cleaned


def split_digit_group(group: str) -> list[int]:
    """
    Split a run of glued digits into loto numbers.

    - 3 digits: try X+YY and XY+Z. When both give two valid numbers,
      X+YY wins ("711" → 7, 11). When neither does, the run is noise.
    - 4+ digits: greedy, two digits when they make 10-90, otherwise one
      digit when it makes 1-9, otherwise skip the digit.

    Examples:
        "263744" → [26, 37, 44]
        "3642" → [36, 42]
    """
    if len(group) <= 2:
        number = int(group)
        return [number] if is_valid_loto_number(number) else []

    if len(group) == 3:
        first, last_two = int(group[0]), int(group[1:])
        first_two, last = int(group[:2]), int(group[2])

        single_then_double = 1 <= first <= 9 and 10 <= last_two <= 90
        double_then_single = 10 <= first_two <= 90 and 1 <= last <= 9

        if single_then_double:
            return [first, last_two]
        if double_then_single:
            return [first_two, last]
        return []

    numbers: list[int] = []
    i = 0
    while i < len(group):
        if i + 2 <= len(group):
            two_digit = int(group[i : i + 2])
            if 10 <= two_digit <= 90:
                numbers.append(two_digit)
                i += 2
                continue

        one_digit = int(group[i])
        if 1 <= one_digit <= 9:
            numbers.append(one_digit)
        i += 1

    return numbers


def extract_numbers(raw_text: str, exclude_patterns: Sequence[str] = ()) -> list[int]:
    """
    Extract loto numbers from raw OCR text.

    Args:
        raw_text: Text returned by the OCR engine
        exclude_patterns: Literal substrings to remove first (serial numbers)

    Returns:
        Unique numbers in 1-90, ascending. Empty for empty input.
    """
    if not raw_text or not raw_text.strip():
        return []

    cleaned = strip_noise(raw_text, exclude_patterns)

    found: set[int] = set()
    for match in DIGIT_RUN_PATTERN.finditer(cleaned):
        found.update(n for n in split_digit_group(match.group()) if is_valid_loto_number(n))

    return sorted(found)


def _confidence_for(count: int) -> Confidence:
    if count == 0:
        return Confidence.NONE
    if count == NUMBERS_PER_CARD:
        return Confidence.HIGH
    return Confidence.LOW


def extract_card_numbers(source: TextSource) -> NumberScan:
    """
    Read the numbers and serial of one card from an OCR result.

    The serial is isolated first and excluded from number extraction,
    otherwise "30-0054" would contribute 30 and 54.
    """
    text = source_text(source)
    serial_number = extract_serial_number(text)

    exclusions: list[str] = []
    if serial_number:
        exclusions.append(serial_number)
        # A partial serial was read without its prefix
        exclusions.append(serial_number[1:])

    numbers = extract_numbers(text, exclusions)

    return NumberScan(
        numbers=tuple(numbers),
        serial_number=serial_number,
        raw_text=text,
        confidence=_confidence_for(len(numbers)),
    )


def merge_scans(scans: Iterable[NumberScan], limit: int = NUMBERS_PER_CARD) -> NumberScan:
    """
    Combine several OCR attempts on the same card.

    Numbers are taken in attempt order until `limit` is reached; the first
    serial number found wins.
    """
    numbers: list[int] = []
    serial_number: str | None = None
    raw_texts: list[str] = []

    for scan in scans:
        raw_texts.append(scan.raw_text)
        if serial_number is None:
            serial_number = scan.serial_number
        for number in scan.numbers:
            if len(numbers) >= limit:
                break
            if number not in numbers:
                numbers.append(number)

    return NumberScan(
        numbers=tuple(sorted(numbers)),
        serial_number=serial_number,
        raw_text=" | ".join(raw_texts),
        confidence=_confidence_for(len(numbers)),
    )
