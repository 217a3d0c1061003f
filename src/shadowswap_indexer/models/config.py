"""Configuration models for the indexer."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DeliveryPolicy:
    """Relayer delivery attempt policy. Fixed delay, no backoff or jitter."""

    max_attempts: int = 3
    retry_delay: float = 5.0  # seconds between failed attempts
    timeout: float = 60.0  # hard limit per attempt, seconds


@dataclass
class SelectorConfig:
    """Event selectors (topic 0). Empty values are derived from event names."""

    deposit: str = ""
    htlc_created: str = ""
    withdrawal: str = ""


@dataclass
class IndexerConfig:
    """Complete indexer configuration."""

    # Indexer
    poll_interval: int = 5  # seconds
    error_backoff: int = 30  # seconds
    log_level: str = "info"
    max_block_range: int = 100

    # Stream
    stream_url: str = ""  # Starknet JSON-RPC endpoint
    starting_block: int = 3200350
    finality: str = "accepted"

    # Pools
    fast_pool_address: str = ""
    standard_pool_address: str = ""
    selectors: SelectorConfig = field(default_factory=SelectorConfig)

    # Relayer
    relayer_url: str = ""  # loaded from env var RELAYER_URL
    hmac_secret: str = ""  # loaded from env var HMAC_SECRET
    delivery: DeliveryPolicy = field(default_factory=DeliveryPolicy)

    # Storage
    db_path: str = "~/.shadowswap_indexer/events.db"
