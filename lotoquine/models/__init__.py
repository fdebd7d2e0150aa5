from lotoquine.models.card import (
    Board,
    Card,
    Cell,
    column_for_number,
    is_valid_loto_number,
)
from lotoquine.models.draw import CalledNumber, CalledNumberSequence, CallSource
from lotoquine.models.failure import (
    CallRejectedError,
    Confidence,
    FailureDetail,
    FailureKind,
    InvariantViolationError,
    KnownError,
    ValidationFailure,
    report_invariant_violation,
)
from lotoquine.models.history import GameHistory, GameHistoryWin, GlobalStats
from lotoquine.models.prize import PrizeCursor, PrizeEntry, Tirage, TirageCache
from lotoquine.models.progress import CardProgress
from lotoquine.models.text_source import (
    AnnotatedTokens,
    BoundingBox,
    TextSource,
    TextToken,
    WholeText,
    source_text,
    source_tokens,
)
from lotoquine.models.win import WinEvent, WinTier

__all__ = [
    "AnnotatedTokens",
    "Board",
    "BoundingBox",
    "CallRejectedError",
    "CallSource",
    "CalledNumber",
    "CalledNumberSequence",
    "Card",
    "CardProgress",
    "Cell",
    "Confidence",
    "FailureDetail",
    "FailureKind",
    "GameHistory",
    "GameHistoryWin",
    "GlobalStats",
    "InvariantViolationError",
    "KnownError",
    "PrizeCursor",
    "PrizeEntry",
    "TextSource",
    "TextToken",
    "Tirage",
    "TirageCache",
    "ValidationFailure",
    "WholeText",
    "WinEvent",
    "WinTier",
    "column_for_number",
    "is_valid_loto_number",
    "report_invariant_violation",
    "source_text",
    "source_tokens",
]
