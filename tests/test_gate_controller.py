# tests/test_gate_controller.py
"""Unit tests for the ESP32 gate/LED controller sink."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import httpx
import pytest
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch
from smartpark.schemas.events import ClearAllEvent, EntryEvent, ExitEvent
from smartpark.services.gate_controller import GateController

ENTRY = EntryEvent(spot="T2", vehicle="MH14TR5555", vehicle_class="truck",
                   entry_time=datetime(2026, 3, 1, 9, 0))


@pytest.fixture
def gate():
    return GateController(base_url="http://10.0.0.50/", enabled=True, timeout=1)


@pytest.mark.asyncio
async def test_entry_posts_vehicle_and_spot(gate):
    with patch.object(gate, "_post", new=AsyncMock(return_value={"ok": True})) as post:
        gate.publish(ENTRY)
        await gate.drain()

    post.assert_awaited_once_with("/entry", {"vehicleId": "MH14TR5555", "vehicleType": "truck", "slotId": "T2"})


@pytest.mark.asyncio
async def test_exit_posts_fee(gate):
    with patch.object(gate, "_post", new=AsyncMock(return_value={})) as post:
        gate.publish(ExitEvent(spot="T2", vehicle="MH14TR5555", duration_minutes=3, fee=9.0))
        await gate.drain()

    post.assert_awaited_once_with("/exit", {"vehicleId": "MH14TR5555", "slotId": "T2", "fee": 9.0})


@pytest.mark.asyncio
async def test_exit_without_spot_still_opens_gate(gate):
    with patch.object(gate, "_post", new=AsyncMock(return_value={})) as post:
        gate.publish(ExitEvent(spot=None, vehicle="MH14TR5555", duration_minutes=3, fee=9.0))
        await gate.drain()

    post.assert_awaited_once_with("/exit", {"vehicleId": "MH14TR5555", "slotId": None, "fee": 9.0})


@pytest.mark.asyncio
async def test_clear_all_has_no_gate_action(gate):
    with patch.object(gate, "_post", new=AsyncMock()) as post:
        gate.publish(ClearAllEvent())
        await gate.drain()

    post.assert_not_awaited()


@pytest.mark.asyncio
async def test_disabled_controller_sends_nothing():
    gate = GateController(base_url="http://10.0.0.50", enabled=False)
    with patch.object(gate, "_post", new=AsyncMock()) as post:
        gate.publish(ENTRY)
        await gate.drain()

    post.assert_not_awaited()


@pytest.mark.asyncio
async def test_post_returns_json_body(gate):
    response = MagicMock(status_code=200)
    response.json.return_value = {"status": "gate opened"}
    with patch("httpx.AsyncClient.post", new=AsyncMock(return_value=response)) as post:
        result = await gate._post("/entry", {"slotId": "C1"})

    assert result == {"status": "gate opened"}
    assert post.await_args.args[0] == "http://10.0.0.50/entry"


@pytest.mark.asyncio
async def test_post_timeout_is_reported_not_raised(gate):
    with patch("httpx.AsyncClient.post", new=AsyncMock(side_effect=httpx.ReadTimeout("slow"))):
        result = await gate._post("/exit", {})

    assert result == {"error": "timeout"}


@pytest.mark.asyncio
async def test_unreachable_controller_is_reported_not_raised(gate):
    with patch("httpx.AsyncClient.post", new=AsyncMock(side_effect=httpx.ConnectError("refused"))):
        result = await gate._post("/exit", {})

    assert "refused" in result["error"]
