"""Starknet block poller - pulls pool events over JSON-RPC, grouped per block."""

from __future__ import annotations

import itertools
import logging
from typing import Sequence

import httpx

from shadowswap_indexer.models.events import Block, BlockHeader, RawChainEvent

log = logging.getLogger(__name__)


class StarknetRpcError(Exception):
    """The node answered with a JSON-RPC error object."""

    def __init__(self, method: str, code: int | None, message: str) -> None:
        super().__init__(f"{method} failed ({code}): {message}")
        self.method = method
        self.code = code


class StarknetBlockPoller:
    """Polls a Starknet node for pool contract events.

    Each poll asks for the chain head (starknet_blockNumber), then reads
    events for [cursor, min(head, cursor + max_block_range - 1)] with
    starknet_getEvents: one filter per pool address, keys restricted to the
    tracked selectors, paging through continuation tokens. Events are
    grouped into Blocks in chain order. The cursor is the next block number
    to fetch and advances past the range even when it held no events.
    """

    def __init__(
        self,
        rpc_url: str,
        pool_addresses: Sequence[str],
        selectors: Sequence[str],
        start_block: int = 0,
        max_block_range: int = 100,
        chunk_size: int = 100,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._rpc_url = rpc_url
        self._pool_addresses = list(pool_addresses)
        self._selectors = list(selectors)
        self._cursor = start_block
        self._max_block_range = max(1, max_block_range)
        self._chunk_size = chunk_size
        self._timeout = timeout
        self._transport = transport
        self._request_ids = itertools.count(1)

    @property
    def cursor(self) -> int:
        return self._cursor

    def set_cursor(self, block_number: int) -> None:
        """Restore cursor from persisted state."""
        self._cursor = block_number

    async def poll(self) -> list[Block]:
        """Fetch blocks past the cursor. Returns only blocks holding events."""
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport,
        ) as client:
            head = int(await self._rpc(client, "starknet_blockNumber", []))
            if head < self._cursor:
                log.debug("Head %d behind cursor %d, nothing to do", head, self._cursor)
                return []

            from_block = self._cursor
            to_block = min(head, from_block + self._max_block_range - 1)

            emitted: list[dict] = []
            for address in self._pool_addresses:
                emitted.extend(
                    await self._get_events(client, address, from_block, to_block)
                )

        blocks = group_blocks(emitted)
        self._cursor = to_block + 1

        if blocks:
            log.info(
                "Polled blocks %d-%d: %d events in %d blocks (cursor: %d)",
                from_block, to_block, sum(len(b.events) for b in blocks),
                len(blocks), self._cursor,
            )
        return blocks

    async def _get_events(
        self, client: httpx.AsyncClient, address: str, from_block: int, to_block: int,
    ) -> list[dict]:
        events: list[dict] = []
        token: str | None = None
        while True:
            event_filter: dict = {
                "from_block": {"block_number": from_block},
                "to_block": {"block_number": to_block},
                "address": address,
                "keys": [self._selectors],
                "chunk_size": self._chunk_size,
            }
            if token:
                event_filter["continuation_token"] = token

            result = await self._rpc(client, "starknet_getEvents", {"filter": event_filter})
            events.extend(result.get("events", []))
            token = result.get("continuation_token")
            if not token:
                return events

    async def _rpc(self, client: httpx.AsyncClient, method: str, params: list | dict):
        request = {
            "jsonrpc": "2.0",
            "id": next(self._request_ids),
            "method": method,
            "params": params,
        }
        try:
            resp = await client.post(self._rpc_url, json=request)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            log.error("Starknet RPC %s failed: %s", method, exc)
            raise

        data = resp.json()
        if "error" in data:
            err = data["error"] or {}
            raise StarknetRpcError(method, err.get("code"), err.get("message", "unknown error"))
        return data.get("result")


def group_blocks(emitted: list[dict]) -> list[Block]:
    """Group RPC emitted events into Blocks ordered by block number.

    Within a block, events are ordered by (transaction_index, event_index)
    when the node reports them, otherwise by arrival. Arrival order comes
    from one query per pool address, so on nodes that omit those indices
    every event of the first pool queried precedes every event of the
    second within the same block, whatever their on-chain order. Each
    event's event_index is its position in the resulting block. Pending
    events (no block_number) are dropped.
    """
    indexed = [
        (seq, ev) for seq, ev in enumerate(emitted) if ev.get("block_number") is not None
    ]
    indexed.sort(
        key=lambda item: (
            int(item[1]["block_number"]),
            int(item[1].get("transaction_index", 0)),
            int(item[1].get("event_index", 0)),
            item[0],
        )
    )

    blocks: list[Block] = []
    for block_number, group in itertools.groupby(
        (ev for _, ev in indexed), key=lambda ev: int(ev["block_number"])
    ):
        events = tuple(
            RawChainEvent(
                origin_address=str(ev.get("from_address", "")),
                topics=tuple(ev.get("keys", [])),
                fields=tuple(ev.get("data", [])),
                transaction_hash=str(ev.get("transaction_hash", "")),
                event_index=position,
            )
            for position, ev in enumerate(group)
        )
        blocks.append(Block(header=BlockHeader(block_number=block_number), events=events))
    return blocks
