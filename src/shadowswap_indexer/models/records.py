"""Internal record types for persistence and operation results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


CHAIN = "starknet"


class ReserveOutcome(str, Enum):
    """Answer of the deduplication gate for one event id."""

    RESERVED = "reserved"
    ALREADY_PROCESSED = "already_processed"


@dataclass(frozen=True)
class DeliveryRecord:
    """A newly observed pool event, as persisted and forwarded to the relayer."""

    event_id: str
    swap_id: str
    event_type: str
    pool_type: str
    block_number: int
    transaction_hash: str
    payload: dict  # decoded field set, opaque to storage
    observed_at: int
    created_at: str  # ISO 8601
    chain: str = CHAIN


@dataclass
class DeliveryResult:
    """Result of forwarding a DeliveryRecord to the relayer."""

    delivered: bool
    event_id: str
    attempts: int = 0
    reason: str = ""  # "delivered", "missing_credentials", "http_error", "rejected", "exception"
    status_code: int | None = None
    error: str | None = None
    duration_ms: int = 0


@dataclass
class BlockReport:
    """Per-block processing counters."""

    block_number: int
    seen: int = 0
    unrecognized: int = 0
    decode_errors: int = 0
    duplicates: int = 0
    delivered: int = 0
    delivery_failures: int = 0
    stored: int = 0
    store_failures: int = 0
    errors: int = 0
    event_ids: list[str] = field(default_factory=list)
