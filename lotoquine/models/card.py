from dataclasses import dataclass, field

from lotoquine.config import (
    GRID_COLUMNS,
    GRID_ROWS,
    MAX_LOTO_NUMBER,
    MIN_LOTO_NUMBER,
)


def is_valid_loto_number(number: object) -> bool:
    """Check that a value is an integer loto number (1-90)."""
    return (
        isinstance(number, int)
        and not isinstance(number, bool)
        and MIN_LOTO_NUMBER <= number <= MAX_LOTO_NUMBER
    )


def column_for_number(number: int) -> int:
    """
    Column a number must occupy on a card.

    1-9 → 0, 10-19 → 1, ..., 80-89 → 8. 90 shares the last column.

    Raises:
        ValueError: If the number is not a loto number
    """
    if not is_valid_loto_number(number):
        raise ValueError(f"Not a loto number: {number!r}")
    if number < 10:
        return 0
    if number == MAX_LOTO_NUMBER:
        return GRID_COLUMNS - 1
    return number // 10


@dataclass(frozen=True, slots=True)
class Cell:
    """
    One cell of a 3x9 card grid.

    Attributes:
        value: Number printed in the cell, None for a blank cell
        row: Row index (0-2)
        column: Column index (0-8)
    """

    value: int | None
    row: int
    column: int


@dataclass(frozen=True, slots=True)
class Card:
    """
    A playable card (carton): 15 numbers on a 3x9 grid.

    Cards are immutable once built. Corrections go through the card
    builder again, never through mutation.

    Attributes:
        id: Unique card identifier
        position: Position on its board (0-11)
        grid: 3 rows of 9 cells
        numbers: The 15 numbers, sorted ascending
        serial_number: Printed serial (e.g. "30-0054") for phone-in checks
    """

    id: str
    position: int
    grid: tuple[tuple[Cell, ...], ...]
    numbers: tuple[int, ...]
    serial_number: str | None = None

    @property
    def display_position(self) -> int:
        """Position as printed on the board (1-12)."""
        return self.position + 1

    def row_numbers(self, row: int) -> tuple[int, ...]:
        """Numbers of one row, left to right."""
        return tuple(cell.value for cell in self.grid[row] if cell.value is not None)

    def rows(self) -> tuple[tuple[int, ...], ...]:
        return tuple(self.row_numbers(row) for row in range(GRID_ROWS))

    def number_signature(self) -> tuple[int, ...]:
        """Sorted numbers, identical for two cards carrying the same 15 numbers."""
        return tuple(sorted(self.numbers))

    def __contains__(self, number: int) -> bool:
        return number in self.numbers


@dataclass(frozen=True)
class Board:
    """
    A board (planche): cards scanned together from one sheet.

    The board owns its cards exclusively.
    """

    id: str
    name: str
    cards: tuple[Card, ...] = field(default_factory=tuple)
    image_url: str | None = None

    def get_card(self, card_id: str) -> Card | None:
        for card in self.cards:
            if card.id == card_id:
                return card
        return None

    def __len__(self) -> int:
        return len(self.cards)


def empty_grid() -> list[list[Cell]]:
    """A mutable 3x9 grid of blank cells, for builders only."""
    return [[Cell(value=None, row=row, column=col) for col in range(GRID_COLUMNS)] for row in range(GRID_ROWS)]


def freeze_grid(grid: list[list[Cell]]) -> tuple[tuple[Cell, ...], ...]:
    return tuple(tuple(row) for row in grid)
