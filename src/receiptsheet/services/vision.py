"""Google Cloud Vision client used to read text off receipt images."""

from __future__ import annotations

import base64
import logging
from typing import Any

import httpx

from receiptsheet.models.receipt import OCRResult, TextAnnotation

logger = logging.getLogger(__name__)

DEFAULT_VISION_URL = "https://vision.googleapis.com/v1/images:annotate"


class VisionError(Exception):
    """Base exception for OCR operations."""


class NoTextDetectedError(VisionError):
    """The image was processed but contained no recognisable text."""


class VisionClient:
    """HTTP client for the Vision ``images:annotate`` endpoint."""

    def __init__(
        self,
        access_token: str,
        api_url: str = DEFAULT_VISION_URL,
        timeout: float = 30.0,
    ) -> None:
        """Initialize Vision client.

        Args:
            access_token: Google OAuth2 access token of the signed-in user
            api_url: Full URL of the annotate endpoint
            timeout: Request timeout in seconds
        """
        if not access_token:
            msg = "access_token is required"
            raise ValueError(msg)

        self.api_url = api_url
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }
        self._client = httpx.AsyncClient(headers=self.headers, timeout=timeout)

    async def __aenter__(self) -> VisionClient:
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    @staticmethod
    def build_request(image: bytes) -> dict[str, Any]:
        """Build the TEXT_DETECTION request body for one image."""
        return {
            "requests": [
                {
                    "image": {"content": base64.b64encode(image).decode("ascii")},
                    "features": [{"type": "TEXT_DETECTION"}],
                }
            ]
        }

    async def detect_text(self, image: bytes) -> OCRResult:
        """Run text detection on ``image`` and return the recognised text.

        Raises:
            NoTextDetectedError: If the image contains no text
            VisionError: If the request fails or the API reports an error
        """
        try:
            response = await self._client.post(
                self.api_url, json=self.build_request(image)
            )
            response.raise_for_status()
            data: dict[str, Any] = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Vision API error: %s - %s",
                e.response.status_code,
                e.response.text,
            )
            raise VisionError(f"Vision API error: {e.response.text}") from e
        except httpx.HTTPError as e:
            logger.error("Vision API request failed: %s", e)
            raise VisionError(f"Vision API request failed: {e}") from e

        return self.parse_response(data)

    @staticmethod
    def parse_response(data: dict[str, Any]) -> OCRResult:
        """Turn an annotate response into an ``OCRResult``."""
        responses = data.get("responses") or [{}]
        first = responses[0]

        if first.get("error"):
            message = first["error"].get("message", "unknown error")
            raise VisionError(f"Vision API error: {message}")

        detections = first.get("textAnnotations") or []
        if not detections:
            raise NoTextDetectedError("No text detected in the image")

        annotations = [TextAnnotation.model_validate(item) for item in detections]
        logger.info("Detected %d text annotations", len(annotations))
        return OCRResult(text=annotations[0].description, annotations=annotations)
