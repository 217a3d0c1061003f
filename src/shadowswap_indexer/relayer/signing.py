"""Relayer payload construction and HMAC request signing."""

from __future__ import annotations

import hashlib
import hmac
import json

from shadowswap_indexer.models.records import DeliveryRecord


def build_payload(record: DeliveryRecord) -> dict:
    """Relayer body: common envelope plus the variant's own fields only."""
    payload = {
        "event_type": record.event_type,
        "chain": record.chain,
        "transaction_hash": record.transaction_hash,
        "pool_type": record.pool_type,
    }
    payload.update({k: v for k, v in record.payload.items() if v is not None})
    return payload


def serialize_payload(payload: dict) -> str:
    """Compact JSON, key order preserved. The signature covers these exact bytes."""
    return json.dumps(payload, separators=(",", ":"))


def sign(body: str, secret: str, timestamp: str) -> str:
    """Hex HMAC-SHA256 over timestamp || body."""
    message = (timestamp + body).encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def signed_headers(body: str, secret: str, timestamp: str) -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "x-timestamp": timestamp,
        "x-signature": sign(body, secret, timestamp),
    }
