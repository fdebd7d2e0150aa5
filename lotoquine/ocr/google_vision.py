"""
Google Cloud Vision OCR client.

Sends an image to the TEXT_DETECTION feature and converts the response
into a TextSource:

    textAnnotations[0]   → the whole text   (WholeText)
    textAnnotations[1:]  → one per token    (AnnotatedTokens)

OCR is best effort: any failure (network, quota, malformed response)
yields an empty WholeText and is logged, so callers fall through to
"nothing read" instead of handling exceptions.
"""

import base64
import logging
from typing import Any

import httpx

from lotoquine.config import settings
from lotoquine.models.text_source import AnnotatedTokens, BoundingBox, TextSource, TextToken, WholeText

logger = logging.getLogger(__name__)

MAX_RESULTS = 100


def _parse_box(annotation: dict[str, Any]) -> BoundingBox:
    # Vision omits a coordinate when it is 0
    poly = annotation.get("boundingPoly")
    vertices = poly.get("vertices") if isinstance(poly, dict) else None
    if not isinstance(vertices, list):
        return BoundingBox(vertices=())
    return BoundingBox(
        vertices=tuple((float(v.get("x", 0)), float(v.get("y", 0))) for v in vertices if isinstance(v, dict))
    )


def parse_vision_response(data: Any, positioned: bool = True) -> TextSource:
    """
    Convert a Vision `images:annotate` response body to a TextSource.

    Args:
        data: Decoded JSON response
        positioned: Return tokens with boxes when available

    Returns:
        AnnotatedTokens when positioned and tokens exist, else WholeText
    """
    if not isinstance(data, dict):
        logger.warning("vision_response_malformed", extra={"error": f"body is {type(data).__name__}"})
        return WholeText()

    responses = data.get("responses") or [{}]
    result = responses[0] if isinstance(responses, list) else None
    if not isinstance(result, dict):
        logger.warning("vision_response_malformed", extra={"error": "responses[0] is not an object"})
        return WholeText()

    if "error" in result:
        error = result["error"]
        logger.warning(
            "vision_annotation_error",
            extra={"error": error.get("message", "") if isinstance(error, dict) else str(error)},
        )
        return WholeText()

    annotations = [a for a in result.get("textAnnotations") or [] if isinstance(a, dict)]
    if not annotations:
        return WholeText()

    description = str(annotations[0].get("description", ""))
    tokens = tuple(
        TextToken(text=str(a["description"]), box=_parse_box(a)) for a in annotations[1:] if a.get("description")
    )

    if positioned and tokens:
        return AnnotatedTokens(tokens=tokens)
    return WholeText(text=description)


class GoogleVisionClient:
    """
    Client for the Google Cloud Vision API.

    Usage:
        client = GoogleVisionClient()
        source = await client.annotate(image_bytes)
    """

    def __init__(
        self,
        api_key: str | None = None,
        url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Initialize the Vision client.

        Args:
            api_key: API key. Defaults to settings.google_vision_api_key.
            url: Annotate endpoint. Defaults to settings.google_vision_url.
            timeout: Request timeout in seconds.
        """
        self.api_key = api_key if api_key is not None else settings.google_vision_api_key
        self.url = url or settings.google_vision_url
        self.timeout = timeout or settings.http_timeout

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def annotate(self, image: bytes, positioned: bool = True) -> TextSource:
        """
        Run text detection on an image.

        Args:
            image: Raw image bytes (JPEG, PNG, WebP)
            positioned: Return per-token boxes instead of the whole text

        Returns:
            TextSource; empty WholeText on any failure
        """
        if not self.configured:
            logger.warning("vision_api_key_missing")
            return WholeText()

        payload = {
            "requests": [
                {
                    "image": {"content": base64.b64encode(image).decode("ascii")},
                    "features": [{"type": "TEXT_DETECTION", "maxResults": MAX_RESULTS}],
                }
            ]
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.url, params={"key": self.api_key}, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            logger.warning("vision_request_failed", extra={"error": str(e)})
            return WholeText()
        except ValueError as e:
            logger.warning("vision_response_malformed", extra={"error": str(e)})
            return WholeText()

        source = parse_vision_response(data, positioned)
        logger.debug(
            "vision_annotation_done",
            extra={"token_count": len(source.tokens) if isinstance(source, AnnotatedTokens) else 0},
        )
        return source
