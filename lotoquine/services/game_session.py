"""
Game session: the single mutation point of a game.

Holds the boards in play, the called-number log and the win ledger.
Manual taps, voice detections and simulated draws all go through
`call_number`, which serialises them: no two numbers are appended
without the wins of the first being computed.

A call is applied atomically. The new sequence and its wins are
computed first and committed together, so a cancelled caller (voice
input stopped, simulation cancelled) never leaves a number without its
wins, or wins without their number.
"""

import asyncio
import logging
import random
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from lotoquine.models.card import Board, Card
from lotoquine.models.draw import CalledNumber, CalledNumberSequence, CallSource
from lotoquine.models.failure import CallRejectedError, FailureDetail, FailureKind
from lotoquine.models.history import GameHistory
from lotoquine.models.progress import CardProgress
from lotoquine.models.win import WinEvent
from lotoquine.parsers.spoken_numbers import parse_spoken_numbers
from lotoquine.services.card_builder import find_duplicate_cards
from lotoquine.services.card_progress import compute_board_progress, rank_best_cards
from lotoquine.services.history import build_game_history
from lotoquine.services.win_detector import (
    detect_board_wins,
    replay_wins,
    retract_event,
    retract_wins,
)

logger = logging.getLogger(__name__)

WinListener = Callable[[WinEvent], None]


@dataclass(frozen=True)
class CallResult:
    """Outcome of calling one number."""

    accepted: bool
    call: CalledNumber | None = None
    wins: tuple[WinEvent, ...] = ()
    failure: FailureDetail | None = None


@dataclass(frozen=True)
class UndoResult:
    """Outcome of undoing the last call."""

    undone: CalledNumber | None
    retracted: tuple[WinEvent, ...] = ()
    failure: FailureDetail | None = None


@dataclass(frozen=True)
class BoardAddResult:
    """
    Outcome of adding a board.

    Attributes:
        added: False when every card of the board was already known
        duplicate_positions: 1-based positions of already-known cards
    """

    added: bool
    duplicate_positions: list[int] = field(default_factory=list)


class GameSession:
    """
    One game in progress.

    Usage:
        session = GameSession(boards=[board])
        result = session.call_number(42)
        for win in result.wins:
            ...
        session.undo_last()
    """

    def __init__(
        self,
        boards: Iterable[Board] = (),
        sequence: CalledNumberSequence | None = None,
        started_at: datetime | None = None,
        on_win: WinListener | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._boards: tuple[Board, ...] = tuple(boards)
        self._sequence = sequence or CalledNumberSequence()
        # Restored sessions rebuild their ledger from the log
        self._wins: tuple[WinEvent, ...] = tuple(replay_wins(self._boards, self._sequence))
        self._started_at = started_at or datetime.now(UTC)
        self._on_win = on_win

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def boards(self) -> tuple[Board, ...]:
        return self._boards

    @property
    def sequence(self) -> CalledNumberSequence:
        return self._sequence

    @property
    def wins(self) -> tuple[WinEvent, ...]:
        return self._wins

    @property
    def started_at(self) -> datetime:
        return self._started_at

    def find_card(self, card_id: str) -> tuple[Board, Card] | None:
        for board in self._boards:
            card = board.get_card(card_id)
            if card is not None:
                return board, card
        return None

    # -------------------------------------------------------------------------
    # Calls
    # -------------------------------------------------------------------------

    def call_number(self, number: int, source: CallSource = CallSource.MANUAL) -> CallResult:
        """
        Call a number and compute the wins it produces.

        Duplicate or out-of-range numbers are rejected with a typed
        failure; the session is left unchanged.
        """
        with self._lock:
            before = self._sequence
            try:
                after = before.append(number, source)
            except CallRejectedError as e:
                logger.info(
                    "call_rejected",
                    extra={"number": number, "reason": e.kind.value},
                )
                return CallResult(accepted=False, failure=e.to_detail())

            call = after.last
            if call is None:
                raise RuntimeError("Appending a call produced an empty sequence")
            new_wins = detect_board_wins(
                self._boards,
                before.numbers(),
                after.numbers(),
                call.number,
                call.order,
            )

            self._sequence = after
            self._wins = (*self._wins, *new_wins)

        for event in new_wins:
            logger.info(
                "win_detected",
                extra={
                    "card_id": event.card_id,
                    "tier": event.tier.value,
                    "at_called_number": event.at_called_number,
                    "card_position": event.position,
                },
            )
            if self._on_win is not None:
                self._on_win(event)

        return CallResult(accepted=True, call=call, wins=tuple(new_wins))

    def call_from_transcript(self, transcript: str) -> list[CallResult]:
        """
        Voice input: call every number heard that is not already called.

        Numbers already called are skipped silently; speech recognition
        repeats itself across interim and final transcripts.
        """
        results: list[CallResult] = []
        for number in parse_spoken_numbers(transcript):
            if number in self._sequence:
                continue
            results.append(self.call_number(number, CallSource.VOICE))
        return results

    def undo_last(self) -> UndoResult:
        """
        Remove the last call and retract the wins it triggered.

        The wins to retract are recomputed from the log and removed one by
        one, so a ledger that drifted from the log is reported.
        """
        with self._lock:
            last = self._sequence.last
            if last is None:
                return UndoResult(
                    undone=None,
                    failure=FailureDetail(
                        kind=FailureKind.NOTHING_TO_UNDO,
                        message="No number has been called yet.",
                    ),
                )

            remaining = self._sequence.without_last()
            expected = detect_board_wins(
                self._boards,
                remaining.numbers(),
                self._sequence.numbers(),
                last.number,
                last.order,
            )

            wins = list(self._wins)
            for event in expected:
                wins = retract_event(wins, event)
            wins = retract_wins(wins, last.number)

            retracted = tuple(event for event in self._wins if event not in wins)
            self._sequence = remaining
            self._wins = tuple(wins)

        return UndoResult(undone=last, retracted=retracted)

    def clear_calls(self, now: datetime | None = None) -> GameHistory | None:
        """
        Start a new prize group: archive the round, keep the boards.

        Returns:
            History of the finished round, None if nothing was called.
        """
        now = now or datetime.now(UTC)
        with self._lock:
            history = build_game_history(self._boards, self._sequence, self._wins, self._started_at, now)
            self._sequence = CalledNumberSequence()
            self._wins = ()
            self._started_at = now
        return history

    # -------------------------------------------------------------------------
    # Boards
    # -------------------------------------------------------------------------

    def add_board(self, board: Board) -> BoardAddResult:
        """
        Add a board unless every one of its cards is already in play.
        """
        with self._lock:
            duplicates = find_duplicate_cards(self._boards, board)
            if board.cards and len(duplicates) == len(board.cards):
                return BoardAddResult(added=False, duplicate_positions=duplicates)

            self._boards = (*self._boards, board)
            self._wins = tuple(replay_wins(self._boards, self._sequence))

        return BoardAddResult(added=True, duplicate_positions=duplicates)

    def remove_board(self, board_id: str) -> bool:
        with self._lock:
            boards = tuple(b for b in self._boards if b.id != board_id)
            if len(boards) == len(self._boards):
                return False
            self._boards = boards
            self._wins = tuple(replay_wins(self._boards, self._sequence))
        return True

    # -------------------------------------------------------------------------
    # Derived views
    # -------------------------------------------------------------------------

    def progress(self) -> list[CardProgress]:
        return compute_board_progress(self._boards, self._sequence.numbers())

    def best_cards(self, limit: int | None = None) -> list[CardProgress]:
        ranked = rank_best_cards(self.progress())
        return ranked[:limit] if limit is not None else ranked

    # -------------------------------------------------------------------------
    # Simulation
    # -------------------------------------------------------------------------

    async def simulate_draw(
        self,
        rng: random.Random | None = None,
        delay: float = 1.0,
        stop_after: int | None = None,
    ) -> list[CallResult]:
        """
        Draw random numbers until all 90 are out or `stop_after` calls.

        Cancellable: cancellation lands between two atomic calls.
        """
        rng = rng or random.Random()
        results: list[CallResult] = []

        while stop_after is None or len(results) < stop_after:
            remaining = [n for n in range(1, 91) if n not in self._sequence]
            if not remaining:
                break
            results.append(self.call_number(rng.choice(remaining)))
            await asyncio.sleep(delay)

        return results
