"""Tests 46-49: SQLite event store."""

from __future__ import annotations

from shadowswap_indexer.models.records import DeliveryRecord
from tests.factories import COMMITMENT, NULLIFIER, TX_HASH


def _record(event_id: str, event_type: str = "deposit", **overrides) -> DeliveryRecord:
    values = dict(
        event_id=event_id,
        swap_id=COMMITMENT,
        event_type=event_type,
        pool_type="standard",
        block_number=3_200_400,
        transaction_hash=TX_HASH,
        payload={"commitment": COMMITMENT, "leaf_index": 1, "timestamp": 1_700_000_000},
        observed_at=1_700_000_000,
        created_at="2025-01-01T00:00:00+00:00",
    )
    values.update(overrides)
    return DeliveryRecord(**values)


# ── Test 46: Save and read back ──────────────────────────────────


async def test_save_and_get_event(store):
    record = _record("a_0_deposit")
    assert await store.save_event(record)

    assert await store.has_event("a_0_deposit")
    loaded = await store.get_event("a_0_deposit")
    assert loaded == record


async def test_missing_event(store):
    assert not await store.has_event("nope")
    assert await store.get_event("nope") is None


# ── Test 47: Insert-if-absent ────────────────────────────────────


async def test_save_event_is_insert_if_absent(store):
    assert await store.save_event(_record("a_0_deposit"))
    assert not await store.save_event(_record("a_0_deposit", block_number=1))

    assert await store.count_events() == 1
    loaded = await store.get_event("a_0_deposit")
    assert loaded.block_number == 3_200_400


# ── Test 48: Counts and recent events ────────────────────────────


async def test_counts_and_recent(store):
    await store.save_event(_record("a_0_deposit"))
    await store.save_event(_record(
        "a_1_htlc_created", "htlc_created", swap_id=NULLIFIER,
        payload={"nullifier": NULLIFIER, "hash_lock": "0x1", "timelock": 2, "timestamp": 3},
    ))
    await store.save_event(_record(
        "a_2_htlc_redeemed", "htlc_redeemed", swap_id=NULLIFIER,
        payload={"nullifier": NULLIFIER, "timestamp": 4},
    ))

    assert await store.count_events() == 3
    assert await store.count_events("htlc_created") == 1
    assert await store.count_events("deposit") == 1

    recent = await store.get_recent_events(2)
    assert [r.event_id for r in recent] == ["a_2_htlc_redeemed", "a_1_htlc_created"]
    assert recent[1].payload["hash_lock"] == "0x1"


# ── Test 49: Cursor ──────────────────────────────────────────────


async def test_cursor_roundtrip(store):
    assert await store.get_cursor() is None
    await store.set_cursor(3_200_350)
    await store.set_cursor(3_200_351)
    assert await store.get_cursor() == 3_200_351
