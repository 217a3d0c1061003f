"""Protocol interfaces for the shadowswap_indexer collaborators."""

from shadowswap_indexer.interfaces.source import BlockSource
from shadowswap_indexer.interfaces.delivery import DeliveryClient
from shadowswap_indexer.interfaces.store import EventStore

__all__ = ["BlockSource", "DeliveryClient", "EventStore"]
