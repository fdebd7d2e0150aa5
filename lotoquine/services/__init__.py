"""
Lotoquine services.

Game logic: building cards, tracking progress, detecting wins and
sequencing prizes.
"""

from lotoquine.services.card_builder import (
    CardScanResult,
    build_board,
    build_card,
    build_card_from_positioned,
    build_card_from_source,
    find_duplicate_cards,
    generate_random_board,
)
from lotoquine.services.card_progress import compute_board_progress, compute_progress, rank_best_cards
from lotoquine.services.game_session import BoardAddResult, CallResult, GameSession, UndoResult
from lotoquine.services.history import build_game_history, compute_global_stats
from lotoquine.services.prize_sequencer import PrizeSequencer
from lotoquine.services.win_detector import detect_board_wins, detect_wins, replay_wins, retract_wins

__all__ = [
    "BoardAddResult",
    "CallResult",
    "CardScanResult",
    "GameSession",
    "PrizeSequencer",
    "UndoResult",
    "build_board",
    "build_card",
    "build_card_from_positioned",
    "build_card_from_source",
    "build_game_history",
    "compute_board_progress",
    "compute_global_stats",
    "compute_progress",
    "detect_board_wins",
    "detect_wins",
    "find_duplicate_cards",
    "generate_random_board",
    "rank_best_cards",
    "replay_wins",
    "retract_wins",
]
