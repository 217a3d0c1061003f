"""Block processor - runs every event of a block through the pipeline."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from shadowswap_indexer.config import ConfigurationError
from shadowswap_indexer.interfaces.delivery import DeliveryClient
from shadowswap_indexer.interfaces.store import EventStore
from shadowswap_indexer.models.events import Block, DecodedEvent, RawChainEvent
from shadowswap_indexer.models.records import (
    BlockReport,
    DeliveryRecord,
    ReserveOutcome,
)
from shadowswap_indexer.pipeline.dedup import DeduplicationGate
from shadowswap_indexer.starknet.classifier import EventClassifier
from shadowswap_indexer.starknet.decoder import DecodeError, decode_event

log = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class BlockProcessor:
    """Classify, decode, dedup, deliver and persist each event of a block.

    Events are handled one at a time in producer order. Failures are
    contained at the event boundary: a bad event is logged and counted,
    and the rest of the block still runs. Delivery and persistence are
    independent; a failed delivery is still persisted and a failed write
    does not undo a delivery. Only missing relayer credentials abort the
    block, before any event is looked at.
    """

    def __init__(
        self,
        classifier: EventClassifier,
        gate: DeduplicationGate,
        delivery: DeliveryClient,
        store: EventStore,
        logger: logging.Logger | None = None,
    ) -> None:
        self._classifier = classifier
        self._gate = gate
        self._delivery = delivery
        self._store = store
        self._log = logger or log

    async def process(self, block: Block) -> BlockReport:
        missing = self._delivery.missing_credentials()
        if missing:
            self._log.error("Invalid relayer configuration, missing: %s", ", ".join(missing))
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}",
                missing=missing,
            )

        block_number = block.header.block_number
        report = BlockReport(block_number=block_number)
        if block.events:
            self._log.info("Processing block %d with %d events", block_number, len(block.events))

        for event in block.events:
            report.seen += 1
            try:
                await self._process_event(block_number, event, report)
            except Exception as exc:
                report.errors += 1
                self._log.error(
                    "Unexpected error on event %s#%d in block %d: %s",
                    event.transaction_hash, event.event_index, block_number, exc,
                    exc_info=True,
                )

        if report.seen:
            self._log.info(
                "Block %d done: %d stored, %d delivered, %d duplicates, "
                "%d unrecognized, %d decode errors, %d delivery failures",
                block_number, report.stored, report.delivered, report.duplicates,
                report.unrecognized, report.decode_errors, report.delivery_failures,
            )
        return report

    async def _process_event(
        self, block_number: int, event: RawChainEvent, report: BlockReport,
    ) -> None:
        # 1. Classify
        classification = self._classifier.classify(event)
        if classification is None:
            report.unrecognized += 1
            self._log.debug(
                "Skipping unrecognized event from %s (key %s, tx %s)",
                event.origin_address, event.topics[0] if event.topics else None,
                event.transaction_hash,
            )
            return

        # 2. Decode
        try:
            decoded = decode_event(event, classification)
        except DecodeError as exc:
            report.decode_errors += 1
            self._log.warning("Failed to decode event: %s (keys=%s, data=%s)",
                              exc, list(event.topics), list(event.fields))
            return

        # 3. Dedup
        event_id = self._gate.identify(event, classification.kind)
        if await self._gate.reserve(event_id) is ReserveOutcome.ALREADY_PROCESSED:
            report.duplicates += 1
            self._log.info("Event %s already processed, skipping", event_id)
            return

        record = _to_record(event_id, block_number, decoded)
        self._log.info(
            "Processing %s event %s (pool=%s, block=%d)",
            record.event_type, event_id, record.pool_type, block_number,
        )

        # 4. Deliver (independent of persistence)
        try:
            result = await self._delivery.deliver(record)
        except Exception as exc:
            report.delivery_failures += 1
            self._log.error("Relayer call failed for %s: %s", event_id, exc, exc_info=True)
        else:
            if result.delivered:
                report.delivered += 1
            else:
                report.delivery_failures += 1
                self._log.error(
                    "Failed to notify relayer of %s after %d attempts (%s): %s",
                    event_id, result.attempts, result.reason, result.error,
                )

        # 5. Persist
        try:
            written = await self._store.save_event(record)
        except Exception as exc:
            report.store_failures += 1
            self._log.warning(
                "Failed to save %s to database (non-critical): %s", event_id, exc,
            )
            return

        if written:
            report.stored += 1
            report.event_ids.append(event_id)
        else:
            self._log.info("Event %s already in database, skipping save", event_id)


def _to_record(event_id: str, block_number: int, decoded: DecodedEvent) -> DeliveryRecord:
    return DeliveryRecord(
        event_id=event_id,
        swap_id=decoded.swap_id,
        event_type=decoded.kind.value,
        pool_type=decoded.pool_type.value,
        block_number=block_number,
        transaction_hash=decoded.transaction_hash,
        payload=decoded.fields(),
        observed_at=decoded.observed_at,
        created_at=_now(),
    )
