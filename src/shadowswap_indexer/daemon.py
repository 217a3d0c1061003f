"""Main indexer loop - wires all components together."""

from __future__ import annotations

import asyncio
import logging
import signal

from shadowswap_indexer.config import ConfigurationError, validate_config
from shadowswap_indexer.interfaces.source import BlockSource
from shadowswap_indexer.models.config import IndexerConfig
from shadowswap_indexer.pipeline.dedup import DeduplicationGate
from shadowswap_indexer.pipeline.processor import BlockProcessor
from shadowswap_indexer.relayer.client import RelayerDeliveryClient
from shadowswap_indexer.starknet.classifier import EventClassifier
from shadowswap_indexer.starknet.poller import StarknetBlockPoller
from shadowswap_indexer.starknet.selectors import resolve_selectors
from shadowswap_indexer.storage.sqlite import SQLiteEventStore

log = logging.getLogger(__name__)


class IndexerDaemon:
    """Streams pool events from Starknet and forwards them to the relayer.

    Polls blocks from the cursor, runs each through the BlockProcessor, and
    persists the cursor once a block is done.
    """

    def __init__(self, cfg: IndexerConfig) -> None:
        validate_config(cfg)
        self._cfg = cfg
        self._running = False

        self.selectors = resolve_selectors(cfg.selectors)

        # Core components
        self.store = SQLiteEventStore(cfg.db_path)
        self.poller: BlockSource = StarknetBlockPoller(
            cfg.stream_url,
            pool_addresses=[cfg.fast_pool_address, cfg.standard_pool_address],
            selectors=list(self.selectors.values()),
            start_block=cfg.starting_block,
            max_block_range=cfg.max_block_range,
        )
        self.classifier = EventClassifier(
            cfg.fast_pool_address, cfg.standard_pool_address, self.selectors,
        )
        self.gate = DeduplicationGate(self.store)
        self.delivery = RelayerDeliveryClient(
            cfg.relayer_url, cfg.hmac_secret, cfg.delivery,
        )
        self.processor = BlockProcessor(
            self.classifier, self.gate, self.delivery, self.store,
        )

    async def start(self) -> None:
        """Initialize components and run the main loop."""
        log.info("Starting shadowswap indexer")
        log.info("  Stream: %s (finality: %s)", self._cfg.stream_url, self._cfg.finality)
        log.info("  Fast pool: %s", self._cfg.fast_pool_address)
        log.info("  Standard pool: %s", self._cfg.standard_pool_address)
        log.info("  Relayer: %s", self._cfg.relayer_url)
        for kind, selector in self.selectors.items():
            log.info("  Selector %s: %s", kind.value, selector)

        await self.store.initialize()

        # Restore cursor from last run
        saved = await self.store.get_cursor()
        if saved is not None:
            self.poller.set_cursor(saved)
            log.info("Restored cursor: block %d", saved)
        else:
            log.info("No saved cursor, starting at block %d", self._cfg.starting_block)

        self._running = True
        try:
            await self._main_loop()
        finally:
            await self.store.close()
            log.info("Indexer shut down cleanly")

    async def stop(self) -> None:
        """Signal the indexer to stop after the block in flight."""
        log.info("Stop requested")
        self._running = False

    async def run_once(self) -> int:
        """Poll and process one batch of blocks. Returns blocks processed.

        The poller has already moved past the whole batch, so a failure on
        block k rewinds it to k before re-raising. Events of k that were
        handled before the failure are caught by the dedup gate on retry.
        """
        blocks = await self.poller.poll()
        for block in blocks:
            try:
                await self.processor.process(block)
                await self.store.set_cursor(block.header.block_number + 1)
            except Exception:
                self.poller.set_cursor(block.header.block_number)
                raise

        # Range may have ended on empty blocks
        await self.store.set_cursor(self.poller.cursor)
        return len(blocks)

    async def _main_loop(self) -> None:
        while self._running:
            try:
                await self.run_once()
                await asyncio.sleep(self._cfg.poll_interval)

            except asyncio.CancelledError:
                log.info("Main loop cancelled")
                break
            except ConfigurationError:
                raise
            except Exception as exc:
                log.error("Main loop error: %s", exc, exc_info=True)
                await asyncio.sleep(self._cfg.error_backoff)


async def run_daemon(cfg: IndexerConfig) -> None:
    """Entry point for running the indexer."""
    daemon = IndexerDaemon(cfg)

    loop = asyncio.get_running_loop()

    def _signal_handler():
        asyncio.ensure_future(daemon.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    await daemon.start()
