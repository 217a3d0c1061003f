"""Per-block event pipeline."""

from shadowswap_indexer.pipeline.dedup import DeduplicationGate, make_event_id
from shadowswap_indexer.pipeline.processor import BlockProcessor

__all__ = ["BlockProcessor", "DeduplicationGate", "make_event_id"]
