"""BlockSource protocol - yields ordered blocks of pool contract events."""

from __future__ import annotations

from typing import Protocol

from shadowswap_indexer.models.events import Block


class BlockSource(Protocol):
    """Produces blocks in chain order starting from its cursor."""

    async def poll(self) -> list[Block]:
        """Fetch blocks past the cursor and advance it."""
        ...

    @property
    def cursor(self) -> int:
        """Next block number the source will fetch."""
        ...

    def set_cursor(self, block_number: int) -> None:
        ...
