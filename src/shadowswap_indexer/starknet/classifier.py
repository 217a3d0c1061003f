"""Event classifier - admits pool contract events and names their kind."""

from __future__ import annotations

import logging

from shadowswap_indexer.models.events import (
    Classification,
    EventKind,
    PoolType,
    RawChainEvent,
)
from shadowswap_indexer.starknet.selectors import normalize_felt

log = logging.getLogger(__name__)


class EventClassifier:
    """Maps a raw event to (kind, pool) or None when it is not ours.

    Two checks, in order:
    1. Origin address is one of the two configured pool contracts
    2. topics[0] is one of the three configured event selectors
    """

    def __init__(
        self,
        fast_pool_address: str,
        standard_pool_address: str,
        selectors: dict[EventKind, str],
    ) -> None:
        self._pools = {
            normalize_felt(fast_pool_address): PoolType.FAST,
            normalize_felt(standard_pool_address): PoolType.STANDARD,
        }
        self._kinds = {normalize_felt(sel): kind for kind, sel in selectors.items()}

    def pool_type(self, event: RawChainEvent) -> PoolType | None:
        """Which pool emitted the event, or None for foreign contracts."""
        try:
            return self._pools.get(normalize_felt(event.origin_address))
        except ValueError:
            return None

    def classify(self, event: RawChainEvent) -> Classification | None:
        pool = self.pool_type(event)
        if pool is None:
            return None

        if not event.topics:
            return None
        try:
            kind = self._kinds.get(normalize_felt(event.topics[0]))
        except ValueError:
            log.debug("Unparseable selector %r in tx %s", event.topics[0], event.transaction_hash)
            return None
        if kind is None:
            return None

        return Classification(kind=kind, pool_type=pool)
