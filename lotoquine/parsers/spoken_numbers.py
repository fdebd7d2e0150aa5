"""
French spoken-number parser.

Speech recognition returns transcripts such as "le vingt-et-un et le 32".
This module turns them into loto numbers (1-90).

Word matching is a fold over an immutable remaining-text value: phrases
are tried longest first, and every occurrence of a matched phrase is
blanked so "vingt-et-un" can never also yield "vingt".
"""

import re
from functools import reduce

from lotoquine.models.card import is_valid_loto_number

_UNITS = ("", "un", "deux", "trois", "quatre", "cinq", "six", "sept", "huit", "neuf")
_TEENS = (
    "dix",
    "onze",
    "douze",
    "treize",
    "quatorze",
    "quinze",
    "seize",
    "dix-sept",
    "dix-huit",
    "dix-neuf",
)
_TENS = {2: "vingt", 3: "trente", 4: "quarante", 5: "cinquante", 6: "soixante"}

# Belgian and Swiss forms for 70, 80, 90
_REGIONAL_TENS = {"septante": 70, "huitante": 80, "octante": 80, "nonante": 90}


def _with_spaced_variant(vocabulary: dict[str, int], phrase: str, value: int) -> None:
    vocabulary[phrase] = value
    vocabulary[phrase.replace("-", " ")] = value


def _add_compounds(vocabulary: dict[str, int], ten_word: str, base: int) -> None:
    """Add "<ten>-et-un(e)", "<ten>-un(e)" and "<ten>-deux" ... "<ten>-neuf"."""
    for one in ("un", "une"):
        _with_spaced_variant(vocabulary, f"{ten_word}-et-{one}", base + 1)
        _with_spaced_variant(vocabulary, f"{ten_word}-{one}", base + 1)
    for unit in range(2, 10):
        _with_spaced_variant(vocabulary, f"{ten_word}-{_UNITS[unit]}", base + unit)


def _build_vocabulary() -> dict[str, int]:
    vocabulary: dict[str, int] = {"une": 1}

    for value in range(1, 10):
        vocabulary[_UNITS[value]] = value
    for offset, word in enumerate(_TEENS):
        _with_spaced_variant(vocabulary, word, 10 + offset)

    for ten, word in _TENS.items():
        vocabulary[word] = ten * 10
        _add_compounds(vocabulary, word, ten * 10)

    # 70-79 are built on soixante + 10-19
    _with_spaced_variant(vocabulary, "soixante-dix", 70)
    _with_spaced_variant(vocabulary, "soixante-et-onze", 71)
    for offset, word in enumerate(_TEENS[1:], start=1):
        _with_spaced_variant(vocabulary, f"soixante-{word}", 70 + offset)

    # 80-90 are built on quatre-vingt(s)
    for word in ("quatre-vingts", "quatre-vingt"):
        _with_spaced_variant(vocabulary, word, 80)
    for unit in range(1, 10):
        _with_spaced_variant(vocabulary, f"quatre-vingt-{_UNITS[unit]}", 80 + unit)
    _with_spaced_variant(vocabulary, "quatre-vingt-une", 81)
    _with_spaced_variant(vocabulary, "quatre-vingt-dix", 90)

    for word, value in _REGIONAL_TENS.items():
        vocabulary[word] = value
        if value < 90:
            _add_compounds(vocabulary, word, value)

    return vocabulary


FRENCH_NUMBERS: dict[str, int] = _build_vocabulary()

# Longest phrases first so compounds win over their prefixes
_PHRASES_BY_LENGTH: tuple[str, ...] = tuple(sorted(FRENCH_NUMBERS, key=len, reverse=True))

_PHRASE_PATTERNS: dict[str, re.Pattern[str]] = {
    phrase: re.compile(rf"(?<![\w-]){re.escape(phrase)}(?![\w-])") for phrase in _PHRASES_BY_LENGTH
}

_DIGITS_PATTERN = re.compile(r"\b(\d{1,2})\b")

# (remaining text, matches as (position, value))
_FoldState = tuple[str, tuple[tuple[int, int], ...]]


def _consume_phrase(state: _FoldState, phrase: str) -> _FoldState:
    """Record every occurrence of `phrase` and blank it in the remaining text."""
    remaining, matches = state
    pattern = _PHRASE_PATTERNS[phrase]

    found = tuple((m.start(), FRENCH_NUMBERS[phrase]) for m in pattern.finditer(remaining))
    if not found:
        return state

    # Blank with spaces of equal length so positions stay comparable
    blanked = pattern.sub(lambda m: " " * len(m.group()), remaining)
    return blanked, matches + found


def _normalize(transcript: str) -> str:
    return re.sub(r"\s+", " ", transcript.lower().replace("’", "'")).strip()


def parse_spoken_numbers(transcript: str) -> list[int]:
    """
    Extract loto numbers from a speech transcript.

    Digits written as digits come first (in order of appearance), then
    number words (in order of appearance). Each value appears once.

    Example:
        parse_spoken_numbers("vingt-et-un et trente-deux") → [21, 32]
    """
    if not transcript or not transcript.strip():
        return []

    normalized = _normalize(transcript)
    results: list[int] = []

    for match in _DIGITS_PATTERN.finditer(normalized):
        number = int(match.group(1))
        if is_valid_loto_number(number) and number not in results:
            results.append(number)

    _, word_matches = reduce(_consume_phrase, _PHRASES_BY_LENGTH, (normalized, ()))

    for _, number in sorted(word_matches):
        if number not in results:
            results.append(number)

    return results


def number_to_french(number: int) -> str:
    """
    Canonical French spelling of a loto number.

    Numbers outside 1-90 are returned as digits.
    """
    if not is_valid_loto_number(number):
        return str(number)

    if number < 10:
        return _UNITS[number]
    if number < 20:
        return _TEENS[number - 10]
    if number == 80:
        return "quatre-vingts"

    ten, unit = divmod(number, 10)

    if ten == 7:
        return "soixante-et-onze" if unit == 1 else f"soixante-{_TEENS[unit]}"
    if ten == 8:
        return f"quatre-vingt-{_UNITS[unit]}"
    if ten == 9:
        return "quatre-vingt-dix"

    if unit == 0:
        return _TENS[ten]
    if unit == 1:
        return f"{_TENS[ten]}-et-un"
    return f"{_TENS[ten]}-{_UNITS[unit]}"
