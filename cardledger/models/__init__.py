from cardledger.models.card import CardMasterRecord, Rarity, normalize_card_id
from cardledger.models.failure import (
    ConcurrentModificationError,
    DailyLimitReachedError,
    ErrorKind,
    FailureBody,
    InvalidRequestError,
    InvalidStageError,
    KnownError,
    MissingIdentityError,
    NoOwnershipError,
    NothingToSellError,
    NotParticipantError,
    PlayerNotFoundError,
    SelectionTooLargeError,
    SessionNotFoundError,
    StorageInconsistentError,
    StorageUnavailableError,
)
from cardledger.models.ledger import (
    DailyQuotaEntry,
    PlayerLedgerEntry,
    PlayerStats,
    day_key,
    next_utc_midnight,
    round_cents,
)
from cardledger.models.trade import (
    SELECTION_ACTIONS,
    TRANSITIONS,
    TradeAction,
    TradeRole,
    TradeSession,
    TradeSide,
    TradeStage,
)

__all__ = [
    "CardMasterRecord",
    "ConcurrentModificationError",
    "DailyLimitReachedError",
    "DailyQuotaEntry",
    "ErrorKind",
    "FailureBody",
    "InvalidRequestError",
    "InvalidStageError",
    "KnownError",
    "MissingIdentityError",
    "NoOwnershipError",
    "NotParticipantError",
    "NothingToSellError",
    "PlayerLedgerEntry",
    "PlayerNotFoundError",
    "PlayerStats",
    "Rarity",
    "SELECTION_ACTIONS",
    "SelectionTooLargeError",
    "SessionNotFoundError",
    "StorageInconsistentError",
    "StorageUnavailableError",
    "TRANSITIONS",
    "TradeAction",
    "TradeRole",
    "TradeSession",
    "TradeSide",
    "TradeStage",
    "day_key",
    "next_utc_midnight",
    "round_cents",
]
