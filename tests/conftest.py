"""Shared fixtures for shadowswap_indexer tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key

from shadowswap_indexer.models.config import DeliveryPolicy, IndexerConfig
from shadowswap_indexer.models.events import EventKind
from shadowswap_indexer.pipeline.dedup import DeduplicationGate
from shadowswap_indexer.pipeline.processor import BlockProcessor
from shadowswap_indexer.starknet.classifier import EventClassifier
from shadowswap_indexer.starknet.selectors import resolve_selectors
from shadowswap_indexer.storage.sqlite import SQLiteEventStore

from tests.mocks import MockDeliveryClient, MockEventStore

FAST_POOL = "0x01749627bb08da4f8c3df6c55045ac429abdceada025262d4c51430d643db84e"
STANDARD_POOL = "0x05cf3a281b3932cb4fec5648558c05fe796bd2d1b6e75554e3306c4849b82ed8"
OTHER_CONTRACT = "0x049d36570d4e46f48e99674bd3fcc84644ddd6b96f7c741b1562b82f9e004dc7"

SELECTORS = resolve_selectors()
DEPOSIT_KEY = SELECTORS[EventKind.DEPOSIT]
HTLC_CREATED_KEY = SELECTORS[EventKind.HTLC_CREATED]
WITHDRAWAL_KEY = SELECTORS[EventKind.HTLC_REDEEMED]

RELAYER_URL = "http://relayer.test"
HMAC_SECRET = "test-hmac-secret"


# ── Report metadata ──────────────────────────────────────────────


def pytest_configure(config):
    """Add network info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Network"] = "Starknet Sepolia"
    meta["Fast Pool"] = FAST_POOL
    meta["Standard Pool"] = STANDARD_POOL


def make_test_config(**overrides) -> IndexerConfig:
    """Build an IndexerConfig suitable for testing."""
    defaults = dict(
        poll_interval=1,
        error_backoff=1,
        stream_url="http://starknet.test/rpc",
        starting_block=100,
        fast_pool_address=FAST_POOL,
        standard_pool_address=STANDARD_POOL,
        relayer_url=RELAYER_URL,
        hmac_secret=HMAC_SECRET,
        delivery=DeliveryPolicy(max_attempts=3, retry_delay=0.0, timeout=5.0),
        db_path=":memory:",
    )
    defaults.update(overrides)
    return IndexerConfig(**defaults)


@pytest.fixture
def test_config():
    """Default IndexerConfig for tests."""
    return make_test_config()


@pytest.fixture
async def store():
    """Initialized in-memory SQLiteEventStore."""
    s = SQLiteEventStore(":memory:")
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def classifier():
    return EventClassifier(FAST_POOL, STANDARD_POOL, SELECTORS)


@pytest.fixture
def mock_delivery():
    return MockDeliveryClient(succeed=True)


@pytest.fixture
def mock_store():
    return MockEventStore()


@pytest.fixture
def processor(classifier, store, mock_delivery):
    """BlockProcessor wired to a real SQLite store and a mock relayer."""
    return BlockProcessor(
        classifier=classifier,
        gate=DeduplicationGate(store),
        delivery=mock_delivery,
        store=store,
    )
