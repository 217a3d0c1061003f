"""Starknet event selectors (the value emitted as an event's first key)."""

from __future__ import annotations

from web3 import Web3

from shadowswap_indexer.models.config import SelectorConfig
from shadowswap_indexer.models.events import EventKind

# starknet_keccak keeps the low 250 bits of keccak-256
MASK_250 = 2**250 - 1

# Cairo event names as declared by the pool contracts
EVENT_NAMES = {
    EventKind.DEPOSIT: "Deposit",
    EventKind.HTLC_CREATED: "HTLCCreated",
    EventKind.HTLC_REDEEMED: "Withdrawal",
}


def felt_to_hex(value: int) -> str:
    """Render a felt as 0x-prefixed, zero-padded 64-digit hex."""
    return f"0x{value:064x}"


def parse_felt(value: str | int) -> int:
    """Parse a hex (or decimal) felt into an int. Raises ValueError."""
    if isinstance(value, bool):
        raise ValueError(f"not a felt: {value!r}")
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        raise ValueError("empty felt")
    if "_" in text:
        raise ValueError(f"not a felt: {value!r}")
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text, 10)


def normalize_felt(value: str | int) -> str:
    """Canonical spelling of a felt so padded and unpadded hex compare equal."""
    return felt_to_hex(parse_felt(value))


def selector_from_name(name: str) -> str:
    """Compute the Starknet selector for an event or function name."""
    digest = Web3.keccak(text=name)
    return felt_to_hex(int.from_bytes(digest, "big") & MASK_250)


def resolve_selectors(overrides: SelectorConfig | None = None) -> dict[EventKind, str]:
    """Selector per event kind; configured values win over derived ones."""
    overrides = overrides or SelectorConfig()
    configured = {
        EventKind.DEPOSIT: overrides.deposit,
        EventKind.HTLC_CREATED: overrides.htlc_created,
        EventKind.HTLC_REDEEMED: overrides.withdrawal,
    }
    return {
        kind: normalize_felt(configured[kind]) if configured[kind] else selector_from_name(name)
        for kind, name in EVENT_NAMES.items()
    }
