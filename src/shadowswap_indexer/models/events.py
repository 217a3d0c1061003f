"""Chain event models: raw events from the block source and decoded pool events."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class EventKind(str, Enum):
    """Semantic kind of a pool contract event."""

    DEPOSIT = "deposit"
    HTLC_CREATED = "htlc_created"
    HTLC_REDEEMED = "htlc_redeemed"  # Withdrawal event on-chain


class PoolType(str, Enum):
    """Which pool deployment emitted the event."""

    FAST = "fast"
    STANDARD = "standard"


@dataclass(frozen=True)
class RawChainEvent:
    """An event as delivered by the block source, before classification."""

    origin_address: str
    topics: tuple[str, ...]  # topics[0] is the event selector
    fields: tuple[str | int, ...]  # non-indexed event body
    transaction_hash: str
    event_index: int  # position within the containing block


@dataclass(frozen=True)
class BlockHeader:
    block_number: int


@dataclass(frozen=True)
class Block:
    """One block worth of pool events, in chain order."""

    header: BlockHeader
    events: tuple[RawChainEvent, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Classification:
    """Result of a successful classification."""

    kind: EventKind
    pool_type: PoolType


@dataclass(frozen=True)
class Deposit:
    """Shielded deposit inserted into the pool's merkle tree (Deposit key)."""

    commitment: str
    leaf_index: int  # u32
    observed_at: int  # u64, block timestamp emitted by the contract
    transaction_hash: str
    event_index: int
    pool_type: PoolType

    kind = EventKind.DEPOSIT

    @property
    def swap_id(self) -> str:
        return self.commitment

    def fields(self) -> dict:
        return {
            "commitment": self.commitment,
            "leaf_index": self.leaf_index,
            "timestamp": self.observed_at,
        }


@dataclass(frozen=True)
class HTLCCreated:
    """HTLC locked against a nullifier (HTLCCreated key)."""

    nullifier: str
    hash_lock: str
    timelock: int  # u64
    observed_at: int  # u64
    transaction_hash: str
    event_index: int
    pool_type: PoolType

    kind = EventKind.HTLC_CREATED

    @property
    def swap_id(self) -> str:
        return self.nullifier

    def fields(self) -> dict:
        return {
            "nullifier": self.nullifier,
            "hash_lock": self.hash_lock,
            "timelock": self.timelock,
            "timestamp": self.observed_at,
        }


@dataclass(frozen=True)
class Withdrawal:
    """HTLC redeemed by revealing its secret (Withdrawal key)."""

    nullifier: str
    observed_at: int  # u64
    transaction_hash: str
    event_index: int
    pool_type: PoolType

    kind = EventKind.HTLC_REDEEMED

    @property
    def swap_id(self) -> str:
        return self.nullifier

    def fields(self) -> dict:
        return {
            "nullifier": self.nullifier,
            "timestamp": self.observed_at,
        }


DecodedEvent = Union[Deposit, HTLCCreated, Withdrawal]
