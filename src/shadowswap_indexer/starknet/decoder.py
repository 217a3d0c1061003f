"""Positional decoders for pool contract events.

Key slot 0 is the selector (consumed by the classifier) and slot 1 is the
event's indexed id: the commitment for Deposit, the nullifier for the HTLC
events. Remaining members arrive in the data array in declaration order.
"""

from __future__ import annotations

from shadowswap_indexer.models.events import (
    Classification,
    DecodedEvent,
    Deposit,
    EventKind,
    HTLCCreated,
    PoolType,
    RawChainEvent,
    Withdrawal,
)
from shadowswap_indexer.starknet.selectors import felt_to_hex, parse_felt

U32_MAX = 2**32 - 1
U64_MAX = 2**64 - 1


class DecodeError(Exception):
    """A classified event is malformed or truncated."""

    def __init__(self, kind: EventKind, transaction_hash: str, reason: str) -> None:
        super().__init__(f"{kind.value} event in {transaction_hash}: {reason}")
        self.kind = kind
        self.transaction_hash = transaction_hash
        self.reason = reason


def _require(event: RawChainEvent, kind: EventKind, n_topics: int, n_fields: int) -> None:
    if len(event.topics) < n_topics:
        raise DecodeError(
            kind, event.transaction_hash,
            f"expected {n_topics} keys, got {len(event.topics)}",
        )
    if len(event.fields) < n_fields:
        raise DecodeError(
            kind, event.transaction_hash,
            f"expected {n_fields} data fields, got {len(event.fields)}",
        )


def _uint(event: RawChainEvent, kind: EventKind, index: int, limit: int, name: str) -> int:
    raw = event.fields[index]
    try:
        value = parse_felt(raw)
    except (TypeError, ValueError):
        raise DecodeError(kind, event.transaction_hash, f"{name}={raw!r} is not numeric") from None
    if value < 0 or value > limit:
        raise DecodeError(kind, event.transaction_hash, f"{name}={value} out of range")
    return value


def _hex(event: RawChainEvent, kind: EventKind, index: int, name: str) -> str:
    """Hex spelling of a felt member. Strings from the node pass through as sent."""
    raw = event.fields[index]
    if isinstance(raw, str):
        return raw
    try:
        value = parse_felt(raw)
    except (TypeError, ValueError):
        raise DecodeError(kind, event.transaction_hash, f"{name}={raw!r} is not numeric") from None
    if value < 0:
        raise DecodeError(kind, event.transaction_hash, f"{name}={value} out of range")
    return felt_to_hex(value)


def decode_deposit(event: RawChainEvent, pool_type: PoolType) -> Deposit:
    kind = EventKind.DEPOSIT
    _require(event, kind, n_topics=2, n_fields=2)
    return Deposit(
        commitment=event.topics[1],
        leaf_index=_uint(event, kind, 0, U32_MAX, "leaf_index"),
        observed_at=_uint(event, kind, 1, U64_MAX, "timestamp"),
        transaction_hash=event.transaction_hash,
        event_index=event.event_index,
        pool_type=pool_type,
    )


def decode_htlc_created(event: RawChainEvent, pool_type: PoolType) -> HTLCCreated:
    kind = EventKind.HTLC_CREATED
    _require(event, kind, n_topics=2, n_fields=3)
    return HTLCCreated(
        nullifier=event.topics[1],
        hash_lock=_hex(event, kind, 0, "hash_lock"),
        timelock=_uint(event, kind, 1, U64_MAX, "timelock"),
        observed_at=_uint(event, kind, 2, U64_MAX, "timestamp"),
        transaction_hash=event.transaction_hash,
        event_index=event.event_index,
        pool_type=pool_type,
    )


def decode_withdrawal(event: RawChainEvent, pool_type: PoolType) -> Withdrawal:
    kind = EventKind.HTLC_REDEEMED
    _require(event, kind, n_topics=2, n_fields=1)
    return Withdrawal(
        nullifier=event.topics[1],
        observed_at=_uint(event, kind, 0, U64_MAX, "timestamp"),
        transaction_hash=event.transaction_hash,
        event_index=event.event_index,
        pool_type=pool_type,
    )


_DECODERS = {
    EventKind.DEPOSIT: decode_deposit,
    EventKind.HTLC_CREATED: decode_htlc_created,
    EventKind.HTLC_REDEEMED: decode_withdrawal,
}


def decode_event(event: RawChainEvent, classification: Classification) -> DecodedEvent:
    """Decode a classified event. Raises DecodeError on malformed input."""
    return _DECODERS[classification.kind](event, classification.pool_type)
