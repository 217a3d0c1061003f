"""Tier 2 fixtures: a local relayer server that checks HMAC signatures."""

from __future__ import annotations

import hashlib
import hmac
import json

import pytest
from aiohttp import web

from shadowswap_indexer.models.config import DeliveryPolicy
from shadowswap_indexer.relayer.client import RelayerDeliveryClient
from tests.conftest import HMAC_SECRET

RELAYER_PORT = 9310


class RelayerState:
    """What the local relayer received, and how it should answer."""

    def __init__(self) -> None:
        self.received: list[dict] = []
        self.bad_signatures = 0
        self.status = 200
        self.body: dict = {"success": True}


@pytest.fixture
async def relayer_server():
    """Local relayer exposing POST /indexer/event.

    Verifies x-signature = HMAC-SHA256(secret, x-timestamp + raw body) and
    answers 401 on mismatch. Returns (base_url, state).
    """
    state = RelayerState()

    async def handle_event(request: web.Request) -> web.Response:
        raw = await request.text()
        timestamp = request.headers.get("x-timestamp", "")
        expected = hmac.new(
            HMAC_SECRET.encode(), (timestamp + raw).encode(), hashlib.sha256,
        ).hexdigest()
        if not hmac.compare_digest(expected, request.headers.get("x-signature", "")):
            state.bad_signatures += 1
            return web.json_response({"success": False, "error": "bad signature"}, status=401)

        state.received.append(json.loads(raw))
        return web.json_response(state.body, status=state.status)

    app = web.Application()
    app.router.add_post("/indexer/event", handle_event)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", RELAYER_PORT)
    await site.start()
    yield f"http://127.0.0.1:{RELAYER_PORT}", state
    await runner.cleanup()


@pytest.fixture
def real_delivery(relayer_server):
    """RelayerDeliveryClient pointed at the local relayer, no retry delay."""
    base_url, _ = relayer_server
    return RelayerDeliveryClient(
        base_url, HMAC_SECRET, DeliveryPolicy(max_attempts=3, retry_delay=0.0, timeout=5.0),
    )
