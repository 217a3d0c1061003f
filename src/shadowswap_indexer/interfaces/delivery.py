"""DeliveryClient protocol - forwards records to the relayer."""

from __future__ import annotations

from typing import Protocol

from shadowswap_indexer.models.records import DeliveryRecord, DeliveryResult


class DeliveryClient(Protocol):
    """Signs and POSTs a record to the relayer with bounded retries."""

    def missing_credentials(self) -> list[str]:
        """Names of unset credentials; empty when delivery is possible."""
        ...

    async def deliver(self, record: DeliveryRecord) -> DeliveryResult:
        ...
