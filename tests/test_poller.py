"""Tests 55-59, 69: Starknet JSON-RPC block poller."""

from __future__ import annotations

import json

import httpx
import pytest

from shadowswap_indexer.starknet.poller import (
    StarknetBlockPoller,
    StarknetRpcError,
    group_blocks,
)
from tests.conftest import DEPOSIT_KEY, FAST_POOL, STANDARD_POOL, WITHDRAWAL_KEY


def _emitted(block: int, tx: str, address: str = FAST_POOL, key: str = DEPOSIT_KEY, **extra) -> dict:
    ev = {
        "from_address": address,
        "keys": [key, "0x1"],
        "data": ["0x0", "0x6553f100"],
        "block_hash": f"0xb{block}",
        "block_number": block,
        "transaction_hash": tx,
    }
    ev.update(extra)
    return ev


class FakeNode:
    """Answers starknet_blockNumber / starknet_getEvents from canned data."""

    def __init__(self, head: int, events: dict[str, list[dict]], page_size: int = 100) -> None:
        self.head = head
        self.events = events
        self.page_size = page_size
        self.requests: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        if body["method"] == "starknet_blockNumber":
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": self.head})

        flt = body["params"]["filter"]
        lo = flt["from_block"]["block_number"]
        hi = flt["to_block"]["block_number"]
        matching = [
            ev for ev in self.events.get(flt["address"], [])
            if lo <= ev["block_number"] <= hi
        ]
        start = int(flt.get("continuation_token", "0"))
        page = matching[start:start + self.page_size]
        result: dict = {"events": page}
        if start + self.page_size < len(matching):
            result["continuation_token"] = str(start + self.page_size)
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})


def _poller(node: FakeNode, start_block: int = 10, max_block_range: int = 100) -> StarknetBlockPoller:
    return StarknetBlockPoller(
        "http://node.test/rpc",
        pool_addresses=[FAST_POOL, STANDARD_POOL],
        selectors=[DEPOSIT_KEY, WITHDRAWAL_KEY],
        start_block=start_block,
        max_block_range=max_block_range,
        transport=httpx.MockTransport(node),
    )


# ── Test 55: Events grouped per block, cursor advanced ───────────


async def test_poll_groups_blocks():
    node = FakeNode(head=20, events={
        FAST_POOL: [_emitted(11, "0xa"), _emitted(13, "0xc")],
        STANDARD_POOL: [_emitted(11, "0xb", address=STANDARD_POOL, key=WITHDRAWAL_KEY)],
    })
    poller = _poller(node)

    blocks = await poller.poll()

    assert [b.header.block_number for b in blocks] == [11, 13]
    first = blocks[0]
    assert [e.transaction_hash for e in first.events] == ["0xa", "0xb"]
    assert [e.event_index for e in first.events] == [0, 1]
    assert first.events[1].origin_address == STANDARD_POOL
    assert first.events[0].topics == (DEPOSIT_KEY, "0x1")
    assert poller.cursor == 21

    get_events = [r for r in node.requests if r["method"] == "starknet_getEvents"]
    assert get_events[0]["params"]["filter"]["keys"] == [[DEPOSIT_KEY, WITHDRAWAL_KEY]]
    assert {r["params"]["filter"]["address"] for r in get_events} == {FAST_POOL, STANDARD_POOL}


# ── Test 56: Range is bounded ────────────────────────────────────


async def test_poll_bounded_range():
    node = FakeNode(head=1_000, events={FAST_POOL: [_emitted(12, "0xa"), _emitted(30, "0xb")]})
    poller = _poller(node, start_block=10, max_block_range=5)

    blocks = await poller.poll()

    assert [b.header.block_number for b in blocks] == [12]
    assert poller.cursor == 15


async def test_poll_head_behind_cursor():
    node = FakeNode(head=5, events={})
    poller = _poller(node, start_block=10)

    assert await poller.poll() == []
    assert poller.cursor == 10


# ── Test 57: Continuation tokens are followed ────────────────────


async def test_poll_follows_continuation_token():
    events = [_emitted(10 + i, f"0x{i}") for i in range(5)]
    node = FakeNode(head=20, events={FAST_POOL: events}, page_size=2)
    poller = _poller(node)

    blocks = await poller.poll()

    assert len(blocks) == 5
    fast_pages = [
        r for r in node.requests
        if r["method"] == "starknet_getEvents" and r["params"]["filter"]["address"] == FAST_POOL
    ]
    assert len(fast_pages) == 3


# ── Test 58: RPC error surfaces ──────────────────────────────────


async def test_poll_rpc_error():
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        return httpx.Response(200, json={
            "jsonrpc": "2.0", "id": body["id"],
            "error": {"code": 24, "message": "Block not found"},
        })

    poller = StarknetBlockPoller(
        "http://node.test/rpc", [FAST_POOL], [DEPOSIT_KEY],
        transport=httpx.MockTransport(handler),
    )
    with pytest.raises(StarknetRpcError, match="Block not found"):
        await poller.poll()
    assert poller.cursor == 0


# ── Test 59: Ordering inside a block ─────────────────────────────


def test_group_blocks_uses_reported_indices():
    emitted = [
        _emitted(7, "0xlate", transaction_index=3, event_index=0),
        _emitted(7, "0xearly", transaction_index=1, event_index=2),
        _emitted(6, "0xprev"),
        {**_emitted(0, "0xpending"), "block_number": None},
    ]
    blocks = group_blocks(emitted)

    assert [b.header.block_number for b in blocks] == [6, 7]
    assert [e.transaction_hash for e in blocks[1].events] == ["0xearly", "0xlate"]
    assert [e.event_index for e in blocks[1].events] == [0, 1]


# ── Test 69: Cross-pool order inside a block ─────────────────────


async def test_cross_pool_order_follows_reported_indices():
    node = FakeNode(head=20, events={
        FAST_POOL: [_emitted(11, "0xlater_tx", transaction_index=4, event_index=0)],
        STANDARD_POOL: [
            _emitted(11, "0xearlier_tx", address=STANDARD_POOL, key=WITHDRAWAL_KEY,
                     transaction_index=1, event_index=0),
        ],
    })
    blocks = await _poller(node).poll()

    assert [e.transaction_hash for e in blocks[0].events] == ["0xearlier_tx", "0xlater_tx"]


async def test_cross_pool_order_without_indices_is_per_pool():
    node = FakeNode(head=20, events={
        FAST_POOL: [_emitted(11, "0xlater_tx")],
        STANDARD_POOL: [_emitted(11, "0xearlier_tx", address=STANDARD_POOL, key=WITHDRAWAL_KEY)],
    })
    blocks = await _poller(node).poll()

    # Pools are queried in configured order; fast pool events come first
    assert [e.transaction_hash for e in blocks[0].events] == ["0xlater_tx", "0xearlier_tx"]
    assert [e.event_index for e in blocks[0].events] == [0, 1]
