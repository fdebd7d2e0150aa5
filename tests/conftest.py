from collections.abc import Callable, Iterator, Sequence

import pytest

from lotoquine.config import settings
from lotoquine.models.card import Board, Card, column_for_number
from lotoquine.services.card_builder import PositionedNumber, build_card_from_positioned

# Rows of a typical printed card: 5 numbers per row, columns by value
SAMPLE_ROWS: tuple[tuple[int, ...], ...] = (
    (5, 23, 41, 62, 80),
    (12, 34, 50, 71, 86),
    (19, 38, 57, 77, 90),
)

OTHER_ROWS: tuple[tuple[int, ...], ...] = (
    (3, 15, 44, 68, 81),
    (7, 27, 46, 73, 84),
    (29, 36, 55, 79, 88),
)

CardFactory = Callable[..., Card]


def _card_from_rows(
    rows: Sequence[Sequence[int]],
    position: int = 0,
    card_id: str | None = None,
    serial_number: str | None = None,
) -> Card:
    entries = [
        PositionedNumber(number=n, row=row, column=column_for_number(n))
        for row, numbers in enumerate(rows)
        for n in numbers
    ]
    card = build_card_from_positioned(entries, position, serial_number, card_id)
    assert isinstance(card, Card), card
    return card


@pytest.fixture
def card_factory() -> CardFactory:
    """Build a card from explicit rows."""
    return _card_from_rows


@pytest.fixture
def sample_card() -> Card:
    return _card_from_rows(SAMPLE_ROWS, position=0, card_id="card-1", serial_number="30-0054")


@pytest.fixture
def other_card() -> Card:
    return _card_from_rows(OTHER_ROWS, position=1, card_id="card-2")


@pytest.fixture
def sample_board(sample_card: Card, other_card: Card) -> Board:
    return Board(id="board-1", name="Planche 1", cards=(sample_card, other_card))


@pytest.fixture
def debug_mode() -> Iterator[None]:
    """Invariant violations raise while this fixture is active."""
    previous = settings.debug
    settings.debug = True
    yield
    settings.debug = previous


@pytest.fixture
def production_mode() -> Iterator[None]:
    previous = settings.debug
    settings.debug = False
    yield
    settings.debug = previous
