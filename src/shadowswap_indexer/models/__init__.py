"""Data models for the shadowswap_indexer."""

from shadowswap_indexer.models.events import (
    Block,
    BlockHeader,
    Classification,
    DecodedEvent,
    Deposit,
    EventKind,
    HTLCCreated,
    PoolType,
    RawChainEvent,
    Withdrawal,
)
from shadowswap_indexer.models.records import (
    CHAIN,
    BlockReport,
    DeliveryRecord,
    DeliveryResult,
    ReserveOutcome,
)
from shadowswap_indexer.models.config import (
    DeliveryPolicy,
    IndexerConfig,
    SelectorConfig,
)

__all__ = [
    "Block", "BlockHeader", "Classification", "DecodedEvent", "Deposit",
    "EventKind", "HTLCCreated", "PoolType", "RawChainEvent", "Withdrawal",
    "CHAIN", "BlockReport", "DeliveryRecord", "DeliveryResult", "ReserveOutcome",
    "DeliveryPolicy", "IndexerConfig", "SelectorConfig",
]
