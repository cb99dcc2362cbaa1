# tests/test_plate_recognition.py
"""Unit tests for plate recognition backends (no network)."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import httpx
import pytest
from unittest.mock import AsyncMock, patch
from smartpark.services.plate_recognition import (
    MockPlateRecognizer,
    PlateRecognizerClient,
    RecognitionError,
    clean_plate,
    get_recognizer,
    is_valid_indian_plate,
)


@pytest.fixture
def client():
    return PlateRecognizerClient(api_key="test-key", api_url="http://lpr.local/plate-reader/",
                                 regions=["in"], min_confidence=0.7)


class TestPlateFormat:
    @pytest.mark.parametrize("plate", ["MH12AB1234", "DL1CA123", "KA05M9"])
    def test_valid(self, plate):
        assert is_valid_indian_plate(plate)

    @pytest.mark.parametrize("plate", ["", "12AB1234", "MH12AB12345", "ABCDEFG"])
    def test_invalid(self, plate):
        assert not is_valid_indian_plate(plate)

    def test_clean_plate(self):
        assert clean_plate(" mh 12 ab 1234\n") == "MH12AB1234"
        assert clean_plate(None) == ""


class TestParseResponse:
    def test_best_result_is_used(self, client):
        reading = client.parse_response({"results": [
            {"plate": "mh12xy9876", "score": 0.81, "region": {"code": "in"}},
            {"plate": "mh12ab1234", "score": 0.93, "region": {"code": "in"}, "vehicle": {"type": "Sedan"}},
        ]})

        assert reading.plate_number == "MH12AB1234"
        assert reading.confidence == 0.93
        assert reading.region == "in"
        assert reading.vehicle_type == "Sedan"

    def test_no_plates(self, client):
        with pytest.raises(RecognitionError, match="No license plates"):
            client.parse_response({"results": []})

    def test_low_confidence(self, client):
        with pytest.raises(RecognitionError, match="confidence"):
            client.parse_response({"results": [{"plate": "mh12ab1234", "score": 0.4}]})

    def test_non_indian_plate(self, client):
        with pytest.raises(RecognitionError, match="Invalid"):
            client.parse_response({"results": [{"plate": "7ABC123", "score": 0.99}]})


class TestCloudClient:
    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        with pytest.raises(RecognitionError, match="API key"):
            await PlateRecognizerClient(api_key="").recognize(b"jpeg")

    @pytest.mark.asyncio
    async def test_network_error_becomes_recognition_error(self, client):
        with patch("httpx.AsyncClient.post", new=AsyncMock(side_effect=httpx.ConnectError("down"))):
            with pytest.raises(RecognitionError):
                await client.recognize(b"jpeg")

    @pytest.mark.asyncio
    async def test_http_error_status(self, client):
        response = httpx.Response(403, json={"detail": "forbidden"})
        with patch("httpx.AsyncClient.post", new=AsyncMock(return_value=response)):
            with pytest.raises(RecognitionError, match="403"):
                await client.recognize(b"jpeg")

    @pytest.mark.asyncio
    async def test_success(self, client):
        response = httpx.Response(201, json={"results": [{"plate": "mh14tr5555", "score": 0.9}]})
        with patch("httpx.AsyncClient.post", new=AsyncMock(return_value=response)) as post:
            reading = await client.recognize(b"jpeg", "gate.jpg")

        assert reading.plate_number == "MH14TR5555"
        assert post.await_args.kwargs["headers"] == {"Authorization": "Token test-key"}


class TestMockRecognizer:
    @pytest.mark.asyncio
    async def test_same_image_same_plate(self):
        recognizer = MockPlateRecognizer()
        first = await recognizer.recognize(b"photo-1")
        second = await recognizer.recognize(b"photo-1")

        assert first.plate_number == second.plate_number
        assert first.plate_number in MockPlateRecognizer.SAMPLE_PLATES

    @pytest.mark.asyncio
    async def test_empty_image(self):
        with pytest.raises(RecognitionError):
            await MockPlateRecognizer().recognize(b"")


def test_get_recognizer_backends():
    assert isinstance(get_recognizer("mock"), MockPlateRecognizer)
    assert isinstance(get_recognizer("CLOUD"), PlateRecognizerClient)
    assert isinstance(get_recognizer("unknown"), MockPlateRecognizer)
