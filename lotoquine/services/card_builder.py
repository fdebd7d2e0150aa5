"""
Card grid builder.

Turns 15 scanned numbers into a Card on the canonical 3x9 grid.

=============================================================================
PLACEMENT RULES
=============================================================================

A number's column is fixed by its value (see `column_for_number`); a
column holds at most 3 numbers. Two builders exist:

- Plain numbers: the i-th smallest number of a column goes into row i.
  Columns read top to bottom in ascending order, but rows are NOT
  guaranteed to hold exactly 5 numbers. An unbalanced result is logged,
  not corrected. Prefer the positioned builder when OCR positions exist.
- Positioned numbers: each number goes where OCR saw it. A second token
  landing on an occupied cell is dropped and logged.

Both builders RETURN a ValidationFailure for bad input; they never raise.
"""

import logging
import random
import re
import uuid
from collections import Counter
from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass

from lotoquine.config import (
    CARDS_PER_BOARD,
    GRID_COLUMNS,
    GRID_ROWS,
    MAX_NUMBERS_PER_COLUMN,
    NUMBERS_PER_CARD,
    NUMBERS_PER_ROW,
)
from lotoquine.models.card import (
    Board,
    Card,
    Cell,
    column_for_number,
    empty_grid,
    freeze_grid,
    is_valid_loto_number,
)
from lotoquine.models.failure import FailureDetail, FailureKind, ValidationFailure
from lotoquine.models.text_source import TextSource, TextToken, is_empty, source_tokens
from lotoquine.parsers.number_tokens import NumberScan, extract_card_numbers, split_digit_group

logger = logging.getLogger(__name__)

_PURE_DIGITS = re.compile(r"\d+")


@dataclass(frozen=True, slots=True)
class PositionedNumber:
    """A number with the grid cell OCR detected it in."""

    number: int
    row: int
    column: int


# =============================================================================
# VALIDATION
# =============================================================================


def validate_card_numbers(numbers: Sequence[int]) -> list[FailureDetail]:
    """
    Check the structural rules of a card.

    Returns:
        Every problem found; empty when the numbers form a valid card.
    """
    problems: list[FailureDetail] = []

    if len(numbers) != NUMBERS_PER_CARD:
        problems.append(
            FailureDetail(
                kind=FailureKind.WRONG_COUNT,
                message=f"A card needs exactly {NUMBERS_PER_CARD} numbers (found {len(numbers)}).",
                suggestion="Add or remove numbers to match the printed card.",
            )
        )

    duplicates = sorted(n for n, count in Counter(numbers).items() if count > 1)
    if duplicates:
        problems.append(
            FailureDetail(
                kind=FailureKind.DUPLICATE_NUMBERS,
                message="Some numbers appear more than once.",
                detail=", ".join(str(n) for n in duplicates),
            )
        )

    out_of_range = [n for n in numbers if not is_valid_loto_number(n)]
    if out_of_range:
        problems.append(
            FailureDetail(
                kind=FailureKind.OUT_OF_RANGE,
                message="Numbers must be between 1 and 90.",
                detail=", ".join(str(n) for n in out_of_range),
            )
        )

    columns: dict[int, list[int]] = {}
    for number in set(numbers):
        if is_valid_loto_number(number):
            columns.setdefault(column_for_number(number), []).append(number)

    for column, values in sorted(columns.items()):
        if len(values) > MAX_NUMBERS_PER_COLUMN:
            problems.append(
                FailureDetail(
                    kind=FailureKind.COLUMN_OVERFLOW,
                    message=(
                        f"Column {column + 1} has {len(values)} numbers "
                        f"(max {MAX_NUMBERS_PER_COLUMN})."
                    ),
                    detail=", ".join(str(n) for n in sorted(values)),
                )
            )

    return problems


# =============================================================================
# BUILDERS
# =============================================================================


def _log_unbalanced_rows(grid: list[list[Cell]], card_id: str) -> None:
    counts = [sum(cell.value is not None for cell in row) for row in grid]
    if any(count != NUMBERS_PER_ROW for count in counts):
        logger.warning(
            "card_rows_unbalanced",
            extra={"card_id": card_id, "row_counts": counts},
        )


def build_card(
    numbers: Sequence[int],
    position: int = 0,
    serial_number: str | None = None,
    card_id: str | None = None,
) -> Card | ValidationFailure:
    """
    Build a card from 15 plain numbers.

    Args:
        numbers: The 15 numbers, any order
        position: Position on the board (0-11)
        serial_number: Printed serial, if known
        card_id: Identifier to reuse (rebuilding after a correction)

    Returns:
        The Card, or a ValidationFailure listing every problem.
    """
    problems = validate_card_numbers(numbers)
    if problems:
        return ValidationFailure(problems=problems, numbers=list(numbers))

    card_id = card_id or str(uuid.uuid4())

    columns: dict[int, list[int]] = {col: [] for col in range(GRID_COLUMNS)}
    for number in numbers:
        columns[column_for_number(number)].append(number)

    grid = empty_grid()
    for col, values in columns.items():
        for row, number in enumerate(sorted(values)):
            grid[row][col] = Cell(value=number, row=row, column=col)

    _log_unbalanced_rows(grid, card_id)

    return Card(
        id=card_id,
        position=position,
        grid=freeze_grid(grid),
        numbers=tuple(sorted(numbers)),
        serial_number=serial_number,
    )


def build_card_from_positioned(
    entries: Iterable[PositionedNumber],
    position: int = 0,
    serial_number: str | None = None,
    card_id: str | None = None,
) -> Card | ValidationFailure:
    """
    Build a card from numbers placed where OCR detected them.

    The first token seen for a cell wins; later tokens for the same cell
    are dropped with a `card_cell_conflict` log. The placed numbers are
    then validated like plain numbers, plus a check that each number sits
    in the column its value requires.
    """
    card_id = card_id or str(uuid.uuid4())
    grid = empty_grid()
    placed: list[PositionedNumber] = []
    problems: list[FailureDetail] = []

    for entry in entries:
        if not (0 <= entry.row < GRID_ROWS and 0 <= entry.column < GRID_COLUMNS):
            problems.append(
                FailureDetail(
                    kind=FailureKind.OUT_OF_RANGE,
                    message=f"Number {entry.number} was detected outside the card grid.",
                    detail=f"row={entry.row} column={entry.column}",
                )
            )
            continue

        existing = grid[entry.row][entry.column].value
        if existing is not None:
            logger.warning(
                "card_cell_conflict",
                extra={
                    "card_id": card_id,
                    "row": entry.row,
                    "column": entry.column,
                    "kept": existing,
                    "dropped": entry.number,
                },
            )
            continue

        grid[entry.row][entry.column] = Cell(value=entry.number, row=entry.row, column=entry.column)
        placed.append(entry)

    numbers = [entry.number for entry in placed]
    problems.extend(validate_card_numbers(numbers))

    misplaced = [
        entry
        for entry in placed
        if is_valid_loto_number(entry.number) and column_for_number(entry.number) != entry.column
    ]
    if misplaced:
        problems.append(
            FailureDetail(
                kind=FailureKind.COLUMN_MISMATCH,
                message="Some numbers were detected in the wrong column.",
                detail=", ".join(f"{e.number}@{e.column + 1}" for e in misplaced),
            )
        )

    if problems:
        return ValidationFailure(problems=problems, numbers=numbers)

    return Card(
        id=card_id,
        position=position,
        grid=freeze_grid(grid),
        numbers=tuple(sorted(numbers)),
        serial_number=serial_number,
    )


# =============================================================================
# OCR SOURCES
# =============================================================================


def positioned_numbers_from_tokens(
    tokens: Sequence[TextToken],
    wanted: Collection[int] | None = None,
) -> list[PositionedNumber]:
    """
    Derive grid positions from OCR token boxes.

    Only all-digit tokens count. The row comes from the token's vertical
    centre relative to the numeric tokens' extent (top → 0, middle → 1,
    bottom → 2); the column comes from the number itself. Glued digit
    tokens are split and share the token's row.

    Args:
        tokens: OCR tokens of one card
        wanted: Numbers kept by the scan. Tokens holding none of them
            (serial, stray digits outside the grid) do not count toward
            the extent.
    """
    numeric: list[tuple[TextToken, list[int]]] = []
    for token in tokens:
        text = token.text.strip()
        if not _PURE_DIGITS.fullmatch(text):
            continue
        numbers = split_digit_group(text)
        if wanted is not None:
            numbers = [n for n in numbers if n in wanted]
        if numbers:
            numeric.append((token, numbers))

    if not numeric:
        return []

    centers = [token.box.center[1] for token, _ in numeric]
    top, bottom = min(centers), max(centers)
    span = bottom - top

    entries: list[PositionedNumber] = []
    for (_, numbers), y in zip(numeric, centers, strict=True):
        relative = (y - top) / span if span else 0.0
        row = min(GRID_ROWS - 1, round(relative * (GRID_ROWS - 1)))
        for number in numbers:
            entries.append(PositionedNumber(number=number, row=row, column=column_for_number(number)))

    return entries


@dataclass(frozen=True)
class CardScanResult:
    """
    Outcome of digitising one card image.

    Exactly one of `card` and `failure` is set.
    """

    scan: NumberScan
    card: Card | None
    failure: ValidationFailure | None
    positioned: bool

    @property
    def ok(self) -> bool:
        return self.card is not None


def build_card_from_source(
    source: TextSource,
    position: int = 0,
    card_id: str | None = None,
) -> CardScanResult:
    """
    Digitise one card from its OCR result.

    Uses token positions when the OCR returned annotated tokens that give
    exactly 15 numbers, and falls back to plain placement otherwise. An
    OCR result with no text fails with EMPTY_INPUT.
    """
    scan = extract_card_numbers(source)
    if is_empty(source):
        empty = ValidationFailure(
            problems=[
                FailureDetail(
                    kind=FailureKind.EMPTY_INPUT,
                    message="No text was read from the card image.",
                    suggestion="Retake the photo with the whole card in view.",
                )
            ]
        )
        return CardScanResult(scan=scan, card=None, failure=empty, positioned=False)

    tokens = source_tokens(source)
    if tokens:
        entries = positioned_numbers_from_tokens(tokens, wanted=set(scan.numbers))
        if len(entries) == NUMBERS_PER_CARD:
            result = build_card_from_positioned(entries, position, scan.serial_number, card_id)
            if isinstance(result, Card):
                return CardScanResult(scan=scan, card=result, failure=None, positioned=True)
            logger.info(
                "positioned_build_failed_falling_back",
                extra={"position": position, "failure": result.message},
            )

    result = build_card(scan.numbers, position, scan.serial_number, card_id)
    if isinstance(result, Card):
        return CardScanResult(scan=scan, card=result, failure=None, positioned=False)
    return CardScanResult(scan=scan, card=None, failure=result, positioned=False)


# =============================================================================
# BOARDS
# =============================================================================


def build_board(
    name: str,
    cards: Iterable[Card],
    image_url: str | None = None,
    board_id: str | None = None,
) -> Board:
    return Board(
        id=board_id or str(uuid.uuid4()),
        name=name,
        cards=tuple(cards),
        image_url=image_url,
    )


def generate_random_numbers(rng: random.Random) -> list[int]:
    """15 distinct numbers with at most 3 per column."""
    numbers: list[int] = []
    per_column: Counter[int] = Counter()

    while len(numbers) < NUMBERS_PER_CARD:
        number = rng.randint(1, 90)
        column = column_for_number(number)
        if number not in numbers and per_column[column] < MAX_NUMBERS_PER_COLUMN:
            numbers.append(number)
            per_column[column] += 1

    return numbers


def generate_random_card(position: int = 0, rng: random.Random | None = None) -> Card:
    """A valid random card, for demos and simulated games."""
    rng = rng or random.Random()
    card = build_card(generate_random_numbers(rng), position)
    if isinstance(card, ValidationFailure):
        raise RuntimeError(f"Generated numbers failed validation: {card.message}")
    return card


def generate_random_board(name: str, rng: random.Random | None = None) -> Board:
    rng = rng or random.Random()
    return build_board(name, (generate_random_card(i, rng) for i in range(CARDS_PER_BOARD)))


def find_duplicate_cards(existing_boards: Iterable[Board], board: Board) -> list[int]:
    """
    Cards of `board` already present on another board.

    Returns:
        1-based positions of the duplicated cards.
    """
    known = {card.number_signature() for existing in existing_boards for card in existing.cards}
    return [card.display_position for card in board.cards if card.number_signature() in known]
