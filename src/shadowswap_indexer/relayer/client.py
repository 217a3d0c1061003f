"""Relayer delivery client - signed POSTs to the relayer's indexer endpoint."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

import httpx

from shadowswap_indexer.models.config import DeliveryPolicy
from shadowswap_indexer.models.records import DeliveryRecord, DeliveryResult
from shadowswap_indexer.relayer.signing import (
    build_payload,
    serialize_payload,
    signed_headers,
)

log = logging.getLogger(__name__)

EVENT_PATH = "/indexer/event"


class RelayerDeliveryClient:
    """Forwards delivery records to the relayer.

    Every attempt is signed afresh (x-timestamp / x-signature headers) and
    bounded by a hard timeout. Failed attempts (non-2xx, transport errors,
    timeouts, or a body reporting success=false) are retried after a fixed
    delay until the policy's attempt budget is spent.
    """

    def __init__(
        self,
        relayer_url: str,
        hmac_secret: str,
        policy: DeliveryPolicy | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.time,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = relayer_url.rstrip("/")
        self._secret = hmac_secret
        self._policy = policy or DeliveryPolicy()
        self._sleep = sleep
        self._clock = clock
        self._transport = transport

    @property
    def has_credentials(self) -> bool:
        return bool(self._base_url and self._secret)

    def missing_credentials(self) -> list[str]:
        missing = []
        if not self._base_url:
            missing.append("RELAYER_URL")
        if not self._secret:
            missing.append("HMAC_SECRET")
        return missing

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}{EVENT_PATH}"

    @property
    def policy(self) -> DeliveryPolicy:
        return self._policy

    async def deliver(self, record: DeliveryRecord) -> DeliveryResult:
        """Send one record. Returns a result, never raises for delivery failures."""
        start = time.monotonic()

        if not self.has_credentials:
            log.error(
                "Relayer credentials missing, not sending %s (has_url=%s, has_secret=%s)",
                record.event_id, bool(self._base_url), bool(self._secret),
            )
            return DeliveryResult(
                delivered=False,
                event_id=record.event_id,
                reason="missing_credentials",
                error="RELAYER_URL or HMAC_SECRET not set",
            )

        body = serialize_payload(build_payload(record))
        policy = self._policy
        reason = ""
        status_code: int | None = None
        error: str | None = None

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(policy.timeout),
            transport=self._transport,
        ) as client:
            for attempt in range(1, policy.max_attempts + 1):
                timestamp = str(int(self._clock()))
                headers = signed_headers(body, self._secret, timestamp)
                log.info(
                    "Relayer call attempt %d/%d: %s %s",
                    attempt, policy.max_attempts, record.event_type, record.transaction_hash,
                )

                try:
                    resp = await asyncio.wait_for(
                        client.post(self.endpoint, content=body, headers=headers),
                        timeout=policy.timeout,
                    )
                except (asyncio.TimeoutError, httpx.TimeoutException):
                    reason, status_code = "exception", None
                    error = f"timeout after {policy.timeout:g}s"
                    log.warning(
                        "Relayer attempt %d timed out for %s", attempt, record.event_id,
                    )
                except Exception as exc:
                    reason, status_code = "exception", None
                    error = f"{type(exc).__name__}: {exc}"
                    log.warning(
                        "Relayer attempt %d failed with exception for %s: %s",
                        attempt, record.event_id, error,
                    )
                else:
                    status_code = resp.status_code
                    if not resp.is_success:
                        reason = "http_error"
                        error = f"relayer HTTP {resp.status_code}: {resp.text[:200]}"
                        log.error(
                            "Relayer returned status %d for %s (attempt %d)",
                            resp.status_code, record.event_id, attempt,
                        )
                    else:
                        try:
                            result = resp.json()
                        except ValueError:
                            result = None

                        if isinstance(result, dict) and result.get("success") is True:
                            duration = int((time.monotonic() - start) * 1000)
                            log.info(
                                "Event %s sent to relayer (attempt %d, %dms)",
                                record.event_id, attempt, duration,
                            )
                            return DeliveryResult(
                                delivered=True,
                                event_id=record.event_id,
                                attempts=attempt,
                                reason="delivered",
                                status_code=status_code,
                                duration_ms=duration,
                            )

                        reason = "rejected"
                        if isinstance(result, dict):
                            error = str(result.get("error") or result.get("message") or "success=false")
                        else:
                            error = "unparseable relayer response"
                        log.warning(
                            "Relayer rejected %s (attempt %d): %s",
                            record.event_id, attempt, error,
                        )

                if attempt < policy.max_attempts:
                    log.info(
                        "Retrying %s in %gs (next attempt %d)",
                        record.event_id, policy.retry_delay, attempt + 1,
                    )
                    await self._sleep(policy.retry_delay)

        duration = int((time.monotonic() - start) * 1000)
        log.error(
            "All %d relayer attempts failed for %s: %s",
            policy.max_attempts, record.event_id, error,
        )
        return DeliveryResult(
            delivered=False,
            event_id=record.event_id,
            attempts=policy.max_attempts,
            reason=reason,
            status_code=status_code,
            error=error,
            duration_ms=duration,
        )
