"""Tests for the Google Vision OCR client."""

import base64
import json
import logging
from typing import Any

import httpx
import pytest
import respx

from lotoquine.models.text_source import AnnotatedTokens, WholeText
from lotoquine.ocr.google_vision import GoogleVisionClient, parse_vision_response

VISION_URL = "https://vision.googleapis.com/v1/images:annotate"


def _annotation(text: str, x: int, y: int) -> dict[str, Any]:
    return {
        "description": text,
        "boundingPoly": {
            "vertices": [
                {"x": x, "y": y},
                {"x": x + 20, "y": y},
                {"x": x + 20, "y": y + 10},
                {"x": x, "y": y + 10},
            ]
        },
    }


@pytest.fixture
def vision_body() -> dict[str, Any]:
    return {
        "responses": [
            {
                "textAnnotations": [
                    {"description": "5 23\n12"},
                    _annotation("5", 10, 10),
                    _annotation("23", 50, 10),
                    _annotation("12", 10, 40),
                ]
            }
        ]
    }


class TestParseVisionResponse:
    def test_positioned_tokens(self, vision_body: dict[str, Any]) -> None:
        source = parse_vision_response(vision_body)

        assert isinstance(source, AnnotatedTokens)
        assert [t.text for t in source.tokens] == ["5", "23", "12"]
        assert source.tokens[1].box.left == 50

    def test_whole_text_when_not_positioned(self, vision_body: dict[str, Any]) -> None:
        source = parse_vision_response(vision_body, positioned=False)

        assert source == WholeText("5 23\n12")

    def test_missing_coordinates_default_to_zero(self) -> None:
        body = {
            "responses": [
                {
                    "textAnnotations": [
                        {"description": "7"},
                        {"description": "7", "boundingPoly": {"vertices": [{"y": 4}, {"x": 9}]}},
                    ]
                }
            ]
        }

        source = parse_vision_response(body)

        assert isinstance(source, AnnotatedTokens)
        assert source.tokens[0].box.vertices == ((0.0, 4.0), (9.0, 0.0))

    def test_only_whole_text_falls_back(self) -> None:
        body = {"responses": [{"textAnnotations": [{"description": "1 Q Tablette"}]}]}

        assert parse_vision_response(body) == WholeText("1 Q Tablette")

    def test_annotation_error_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        body = {"responses": [{"error": {"code": 3, "message": "Bad image data."}}]}

        with caplog.at_level(logging.WARNING, logger="lotoquine.ocr.google_vision"):
            source = parse_vision_response(body)

        assert source == WholeText()
        assert any(r.getMessage() == "vision_annotation_error" for r in caplog.records)

    @pytest.mark.parametrize("body", [{}, {"responses": []}, {"responses": [{}]}])
    def test_empty_responses(self, body: dict[str, Any]) -> None:
        assert parse_vision_response(body) == WholeText()

    @pytest.mark.parametrize("body", [[], [1, 2], "text", None, {"responses": "x"}, {"responses": [[]]}])
    def test_unexpected_shapes_give_empty_text(self, body: Any, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="lotoquine.ocr.google_vision"):
            source = parse_vision_response(body)

        assert source == WholeText()
        assert any(r.getMessage() == "vision_response_malformed" for r in caplog.records)

    def test_error_as_plain_string(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="lotoquine.ocr.google_vision"):
            source = parse_vision_response({"responses": [{"error": "quota"}]})

        assert source == WholeText()
        assert any(r.getMessage() == "vision_annotation_error" for r in caplog.records)

    def test_non_object_annotations_skipped(self) -> None:
        body = {
            "responses": [
                {"textAnnotations": [{"description": "5 23"}, "junk", _annotation("5", 10, 10), {"boundingPoly": 3}]}
            ]
        }

        source = parse_vision_response(body)

        assert isinstance(source, AnnotatedTokens)
        assert [t.text for t in source.tokens] == ["5"]

    def test_malformed_bounding_poly(self) -> None:
        body = {
            "responses": [
                {
                    "textAnnotations": [
                        {"description": "5"},
                        {"description": "5", "boundingPoly": {"vertices": "none"}},
                    ]
                }
            ]
        }

        source = parse_vision_response(body)

        assert isinstance(source, AnnotatedTokens)
        assert source.tokens[0].box.vertices == ()


class TestAnnotate:
    @pytest.mark.asyncio
    @respx.mock
    async def test_sends_image_and_key(self, vision_body: dict[str, Any]) -> None:
        route = respx.post(VISION_URL).mock(return_value=httpx.Response(200, json=vision_body))
        client = GoogleVisionClient(api_key="test-key", url=VISION_URL)

        source = await client.annotate(b"image-bytes")

        assert isinstance(source, AnnotatedTokens)
        request = route.calls.last.request
        assert request.url.params["key"] == "test-key"
        sent = json.loads(request.content)["requests"][0]
        assert sent["image"]["content"] == base64.b64encode(b"image-bytes").decode("ascii")
        assert sent["features"][0]["type"] == "TEXT_DETECTION"

    @pytest.mark.asyncio
    @respx.mock
    async def test_http_error_gives_empty_text(self, caplog: pytest.LogCaptureFixture) -> None:
        respx.post(VISION_URL).mock(return_value=httpx.Response(403))
        client = GoogleVisionClient(api_key="test-key", url=VISION_URL)

        with caplog.at_level(logging.WARNING, logger="lotoquine.ocr.google_vision"):
            source = await client.annotate(b"image-bytes")

        assert source == WholeText()
        assert any(r.getMessage() == "vision_request_failed" for r in caplog.records)

    @pytest.mark.asyncio
    @respx.mock
    async def test_malformed_body_gives_empty_text(self) -> None:
        respx.post(VISION_URL).mock(return_value=httpx.Response(200, text="not json"))
        client = GoogleVisionClient(api_key="test-key", url=VISION_URL)

        assert await client.annotate(b"image-bytes") == WholeText()

    @pytest.mark.asyncio
    @respx.mock
    async def test_json_array_body_gives_empty_text(self) -> None:
        respx.post(VISION_URL).mock(return_value=httpx.Response(200, json=[1, 2]))
        client = GoogleVisionClient(api_key="test-key", url=VISION_URL)

        assert await client.annotate(b"image-bytes") == WholeText()

    @pytest.mark.asyncio
    async def test_missing_key_skips_request(self) -> None:
        client = GoogleVisionClient(api_key="", url=VISION_URL)

        assert not client.configured
        assert await client.annotate(b"image-bytes") == WholeText()
