"""Tests for card progress computation."""

import random

from lotoquine.models.card import Board, Card
from lotoquine.models.win import WinTier
from lotoquine.services.card_progress import (
    compute_board_progress,
    compute_progress,
    one_remaining_alerts,
    rank_best_cards,
)

ROW_0 = (5, 23, 41, 62, 80)
ROW_1 = (12, 34, 50, 71, 86)
ROW_2 = (19, 38, 57, 77, 90)


class TestComputeProgress:
    def test_nothing_called(self, sample_card: Card) -> None:
        progress = compute_progress(sample_card, set())

        assert progress.marked_numbers == ()
        assert progress.lines_progress == (0, 0, 0)
        assert progress.lines_completed == (False, False, False)
        # Ties go to the lowest row index
        assert progress.missing_for_line == ROW_0
        assert progress.missing_for_double_line == ROW_0 + ROW_1
        assert progress.missing_for_full_card == sample_card.numbers

    def test_best_row_targeted(self, sample_card: Card) -> None:
        progress = compute_progress(sample_card, {12, 34, 50, 19})

        assert progress.lines_progress == (0, 3, 1)
        assert progress.missing_for_line == (71, 86)
        assert progress.missing_for_double_line == (71, 86, 38, 57, 77, 90)

    def test_one_line_complete(self, sample_card: Card) -> None:
        progress = compute_progress(sample_card, set(ROW_1))

        assert progress.lines_completed == (False, True, False)
        assert progress.completed_lines == 1
        assert progress.missing_for_line == ()
        assert progress.missing_for_double_line == ROW_0

    def test_two_lines_complete(self, sample_card: Card) -> None:
        progress = compute_progress(sample_card, set(ROW_0) | set(ROW_2))

        assert progress.completed_lines == 2
        assert progress.missing_for_line == ()
        assert progress.missing_for_double_line == ()
        assert progress.missing_for_full_card == ROW_1

    def test_full_card(self, sample_card: Card) -> None:
        progress = compute_progress(sample_card, set(sample_card.numbers))

        assert progress.is_full
        assert progress.completed_lines == 3
        assert progress.missing_for(WinTier.FULL_CARD) == ()

    def test_numbers_not_on_card_ignored(self, sample_card: Card) -> None:
        progress = compute_progress(sample_card, {1, 2, 3, 5})

        assert progress.marked_numbers == (5,)
        assert progress.lines_progress == (1, 0, 0)

    def test_board_id_carried(self, sample_card: Card) -> None:
        assert compute_progress(sample_card, set(), "board-9").board_id == "board-9"


class TestProgressProperties:
    def test_pure_function_of_called_set(self, sample_card: Card) -> None:
        """Same called set, same progress, whatever the call order."""
        numbers = [5, 23, 12, 90, 41, 34]
        shuffled = numbers[:]
        random.Random(3).shuffle(shuffled)

        assert compute_progress(sample_card, set(numbers)) == compute_progress(sample_card, frozenset(shuffled))

    def test_monotonic_as_numbers_are_called(self, sample_card: Card) -> None:
        order = list(range(1, 91))
        random.Random(11).shuffle(order)

        called: set[int] = set()
        previous = compute_progress(sample_card, called)
        for number in order:
            called.add(number)
            current = compute_progress(sample_card, called)

            assert len(current.missing_for_full_card) <= len(previous.missing_for_full_card)
            assert current.completed_lines >= previous.completed_lines
            assert all(c >= p for c, p in zip(current.lines_progress, previous.lines_progress, strict=True))

            previous = current

        assert previous.is_full


class TestBoardProgress:
    def test_every_card_covered(self, sample_board: Board) -> None:
        progress = compute_board_progress([sample_board], set())

        assert [p.card_id for p in progress] == ["card-1", "card-2"]
        assert all(p.board_id == "board-1" for p in progress)


class TestRankBestCards:
    def test_closest_card_first(self, sample_board: Board) -> None:
        # card-2 is one number away from its first row
        called = {3, 15, 44, 68}
        ranked = rank_best_cards(compute_board_progress([sample_board], called))

        assert ranked[0].card_id == "card-2"

    def test_full_card_distance_wins_when_lines_done(self, sample_board: Board) -> None:
        called = set(ROW_0) | set(ROW_1) | {19, 38, 57, 77}
        ranked = rank_best_cards(compute_board_progress([sample_board], called))

        assert ranked[0].card_id == "card-1"


class TestOneRemainingAlerts:
    def test_line_and_full_card_alerts(self, sample_card: Card) -> None:
        one_for_line = compute_progress(sample_card, {5, 23, 41, 62})
        one_for_full = compute_progress(sample_card, set(sample_card.numbers) - {90})

        assert one_remaining_alerts([one_for_line]) == [("card-1", WinTier.LINE, 80)]
        assert one_remaining_alerts([one_for_full]) == [("card-1", WinTier.FULL_CARD, 90)]
