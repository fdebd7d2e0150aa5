"""Tests for the game session."""

import asyncio
import random
from datetime import UTC, datetime, timedelta

import pytest

from lotoquine.models.card import Board, Card
from lotoquine.models.draw import CalledNumberSequence, CallSource
from lotoquine.models.failure import FailureKind
from lotoquine.models.win import WinEvent, WinTier
from lotoquine.services.game_session import GameSession

ROW_0 = (5, 23, 41, 62, 80)
ROW_1 = (12, 34, 50, 71, 86)


@pytest.fixture
def session(sample_board: Board) -> GameSession:
    return GameSession(boards=[sample_board])


class TestCallNumber:
    def test_accepted_call_recorded(self, session: GameSession) -> None:
        result = session.call_number(42)

        assert result.accepted
        assert result.call is not None
        assert result.call.order == 1
        assert result.call.source is CallSource.MANUAL
        assert 42 in session.sequence

    def test_duplicate_rejected(self, session: GameSession) -> None:
        session.call_number(42)

        result = session.call_number(42)

        assert not result.accepted
        assert result.failure is not None
        assert result.failure.kind is FailureKind.DUPLICATE_CALL
        assert len(session.sequence) == 1

    @pytest.mark.parametrize("number", [0, 91, -5])
    def test_out_of_range_rejected(self, session: GameSession, number: int) -> None:
        result = session.call_number(number)

        assert not result.accepted
        assert result.failure is not None
        assert result.failure.kind is FailureKind.INVALID_NUMBER
        assert len(session.sequence) == 0

    def test_orders_are_dense(self, session: GameSession) -> None:
        for number in (7, 3, 88):
            session.call_number(number)

        assert [c.order for c in session.sequence.calls] == [1, 2, 3]

    def test_win_reported_with_call(self, session: GameSession) -> None:
        for number in ROW_0[:4]:
            assert session.call_number(number).wins == ()

        result = session.call_number(ROW_0[4])

        assert [(w.card_id, w.tier) for w in result.wins] == [("card-1", WinTier.LINE)]
        assert session.wins == result.wins

    def test_listener_notified(self, sample_board: Board) -> None:
        received: list[WinEvent] = []
        session = GameSession(boards=[sample_board], on_win=received.append)

        for number in ROW_0:
            session.call_number(number)

        assert [w.tier for w in received] == [WinTier.LINE]


class TestCallFromTranscript:
    def test_voice_numbers_called(self, session: GameSession) -> None:
        results = session.call_from_transcript("le vingt-trois et le 5")

        assert [r.call.number for r in results if r.call] == [5, 23]
        assert all(c.source is CallSource.VOICE for c in session.sequence.calls)

    def test_already_called_numbers_skipped(self, session: GameSession) -> None:
        session.call_number(5)

        results = session.call_from_transcript("cinq, vingt-trois")

        assert len(results) == 1
        assert session.sequence.ordered_numbers() == [5, 23]


class TestUndo:
    def test_nothing_to_undo(self, session: GameSession) -> None:
        result = session.undo_last()

        assert result.undone is None
        assert result.failure is not None
        assert result.failure.kind is FailureKind.NOTHING_TO_UNDO

    def test_undo_removes_last_call(self, session: GameSession) -> None:
        session.call_number(5)
        session.call_number(23)

        result = session.undo_last()

        assert result.undone is not None
        assert result.undone.number == 23
        assert session.sequence.ordered_numbers() == [5]

    def test_undo_retracts_triggered_wins(self, session: GameSession) -> None:
        for number in ROW_0:
            session.call_number(number)

        result = session.undo_last()

        assert [w.tier for w in result.retracted] == [WinTier.LINE]
        assert session.wins == ()

    def test_undo_then_recall_gives_same_wins(self, session: GameSession) -> None:
        for number in (*ROW_0, *ROW_1):
            session.call_number(number)
        wins_before = session.wins

        session.undo_last()
        session.call_number(ROW_1[-1])

        assert [(w.card_id, w.tier, w.at_called_number) for w in session.wins] == [
            (w.card_id, w.tier, w.at_called_number) for w in wins_before
        ]


class TestClearCalls:
    def test_history_returned_and_state_reset(self, sample_board: Board) -> None:
        start = datetime(2025, 12, 26, 20, 0, tzinfo=UTC)
        session = GameSession(boards=[sample_board], started_at=start)
        for number in ROW_0:
            session.call_number(number)

        history = session.clear_calls(now=start + timedelta(minutes=5))

        assert history is not None
        assert history.called_numbers == ROW_0
        assert history.duration_seconds == 300
        assert [w.tier for w in history.wins] == [WinTier.LINE]
        assert len(session.sequence) == 0
        assert session.wins == ()
        assert session.boards == (sample_board,)

    def test_nothing_called_no_history(self, session: GameSession) -> None:
        assert session.clear_calls() is None


class TestBoards:
    def test_restored_session_rebuilds_wins(self, sample_board: Board) -> None:
        sequence = CalledNumberSequence()
        for number in ROW_0:
            sequence = sequence.append(number)

        session = GameSession(boards=[sample_board], sequence=sequence)

        assert [w.tier for w in session.wins] == [WinTier.LINE]

    def test_duplicate_board_rejected(self, session: GameSession, sample_card: Card, other_card: Card) -> None:
        copy = Board(id="board-2", name="Copie", cards=(sample_card, other_card))

        result = session.add_board(copy)

        assert not result.added
        assert result.duplicate_positions == [1, 2]
        assert len(session.boards) == 1

    def test_partially_duplicate_board_added(self, session: GameSession, sample_card: Card, card_factory) -> None:
        fresh = card_factory(((1, 20, 40, 60, 81), (2, 21, 42, 63, 82), (3, 22, 43, 64, 83)), position=1)
        board = Board(id="board-2", name="Mixte", cards=(sample_card, fresh))

        result = session.add_board(board)

        assert result.added
        assert result.duplicate_positions == [1]

    def test_adding_board_replays_wins(self, card_factory) -> None:
        session = GameSession()
        for number in ROW_0:
            session.call_number(number)
        assert session.wins == ()

        card = card_factory((ROW_0, ROW_1, (19, 38, 57, 77, 90)), card_id="late")
        session.add_board(Board(id="late-board", name="En retard", cards=(card,)))

        assert [(w.card_id, w.tier) for w in session.wins] == [("late", WinTier.LINE)]

    def test_remove_board(self, session: GameSession) -> None:
        for number in ROW_0:
            session.call_number(number)

        assert session.remove_board("board-1")
        assert session.wins == ()
        assert not session.remove_board("board-1")


class TestDerivedViews:
    def test_progress_for_every_card(self, session: GameSession) -> None:
        session.call_number(5)

        progress = session.progress()

        assert {p.card_id for p in progress} == {"card-1", "card-2"}
        assert next(p for p in progress if p.card_id == "card-1").marked_numbers == (5,)

    def test_best_cards_limited(self, session: GameSession) -> None:
        assert len(session.best_cards(limit=1)) == 1


class TestSimulateDraw:
    @pytest.mark.asyncio
    async def test_draws_until_limit(self, session: GameSession) -> None:
        results = await session.simulate_draw(rng=random.Random(1), delay=0, stop_after=10)

        assert len(results) == 10
        assert all(r.accepted for r in results)
        assert len(set(session.sequence.ordered_numbers())) == 10

    @pytest.mark.asyncio
    async def test_full_draw_wins_every_tier(self, session: GameSession) -> None:
        await session.simulate_draw(rng=random.Random(2), delay=0)

        assert len(session.sequence) == 90
        assert len(session.wins) == 6

    @pytest.mark.asyncio
    async def test_cancellation_leaves_consistent_state(self, session: GameSession) -> None:
        task = asyncio.create_task(session.simulate_draw(rng=random.Random(3), delay=0.01))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        called = session.sequence.ordered_numbers()
        assert [c.order for c in session.sequence.calls] == list(range(1, len(called) + 1))
        # The ledger matches the log exactly
        replayed = GameSession(boards=session.boards, sequence=session.sequence)
        assert replayed.wins == session.wins
