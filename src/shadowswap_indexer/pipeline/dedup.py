"""Deduplication gate - stable event ids checked against the event store."""

from __future__ import annotations

import logging
from collections import OrderedDict

from shadowswap_indexer.interfaces.store import EventStore
from shadowswap_indexer.models.events import EventKind, RawChainEvent
from shadowswap_indexer.models.records import ReserveOutcome

log = logging.getLogger(__name__)

EVENT_ID_SEPARATOR = "_"


def make_event_id(transaction_hash: str, event_index: int, kind: EventKind | str) -> str:
    """Id unique per (transaction, position, kind); identical across restarts."""
    kind_value = kind.value if isinstance(kind, EventKind) else str(kind)
    return EVENT_ID_SEPARATOR.join((transaction_hash, str(event_index), kind_value))


class DeduplicationGate:
    """Guards against storing or forwarding the same event twice.

    The store is the durable source of truth. Ids reserved by this process
    are also kept in memory (bounded, oldest dropped first), so an event whose
    persistence failed is still recognised if it is handed over again before
    a restart.
    """

    MAX_RESERVED: int = 10_000

    def __init__(self, store: EventStore) -> None:
        self._store = store
        self._reserved: OrderedDict[str, None] = OrderedDict()

    def identify(self, event: RawChainEvent, kind: EventKind) -> str:
        return make_event_id(event.transaction_hash, event.event_index, kind)

    async def reserve(self, event_id: str) -> ReserveOutcome:
        if event_id in self._reserved or await self._store.has_event(event_id):
            log.debug("Event %s already processed", event_id)
            return ReserveOutcome.ALREADY_PROCESSED

        self._reserved[event_id] = None
        while len(self._reserved) > self.MAX_RESERVED:
            self._reserved.popitem(last=False)
        return ReserveOutcome.RESERVED
