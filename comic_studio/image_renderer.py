"""
Comic Studio: Image Renderer.

Renders comic panels with Flux Kontext Max via the Replicate REST API.
Flow: create prediction → poll until terminal → download output to disk.

The prediction response is parsed in one place (_parse_prediction); anything
other than a succeeded prediction with a string URL is an error.
"""

import asyncio
import logging
import os
import time
from pathlib import Path
from typing import Optional, Union

import httpx

from comic_studio.errors import (
    ImageDownloadError,
    ImageOutputError,
    ServiceError,
    WorkspaceError,
)

logger = logging.getLogger(__name__)

REPLICATE_API_BASE = "https://api.replicate.com/v1"
DEFAULT_MODEL = "black-forest-labs/flux-kontext-max"

# Fixed generation parameters for every panel
ASPECT_RATIO = "16:9"
OUTPUT_FORMAT = "jpg"
OUTPUT_QUALITY = 90
SAFETY_TOLERANCE = 2

TERMINAL_STATUSES = ("succeeded", "failed", "canceled")


class FluxImageRenderer:
    """Generates and downloads panel images via Replicate."""

    def __init__(
        self,
        api_token: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        max_wait: Optional[float] = None,
        poll_interval: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_token = api_token or os.environ.get("REPLICATE_API_TOKEN", "")
        if not self.api_token:
            logger.warning("REPLICATE_API_TOKEN not set, image generation will fail")
        self.model = model
        self.max_wait = max_wait
        self.poll_interval = poll_interval
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json",
            "Prefer": "wait",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(300.0, connect=30.0),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def render(self, prompt: str, panel_id: Union[int, str], images_dir: Union[str, Path]) -> str:
        """
        Generate one panel image and save it as panel-<id>.jpg.

        Args:
            prompt: Detailed visual description used as the image prompt
            panel_id: Panel identifier used in the filename
            images_dir: Directory to save the image in

        Returns:
            Absolute path of the saved image
        """
        logger.info(f"Generating image for panel {panel_id}: {prompt[:60]}...")
        image_url = await self.generate(prompt)

        output_path = Path(images_dir) / f"panel-{panel_id}.{OUTPUT_FORMAT}"
        logger.info(f"Downloading image for panel {panel_id}...")
        await self._download_image(image_url, output_path)
        return str(output_path.resolve())

    async def generate(self, prompt: str) -> str:
        """Run a prediction and return the output image URL."""
        client = await self._get_client()
        payload = {
            "input": {
                "prompt": prompt,
                "aspect_ratio": ASPECT_RATIO,
                "output_format": OUTPUT_FORMAT,
                "output_quality": OUTPUT_QUALITY,
                "safety_tolerance": SAFETY_TOLERANCE,
            }
        }

        submit_url = f"{REPLICATE_API_BASE}/models/{self.model}/predictions"
        try:
            response = await client.post(submit_url, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            raise ServiceError(f"Replicate request failed: {e}") from e

        if response.status_code not in (200, 201, 202):
            raise ServiceError(
                f"Replicate submit failed ({response.status_code}): {response.text[:500]}",
                status_code=response.status_code,
            )

        prediction = self._decode_prediction(response)
        if prediction.get("status") not in TERMINAL_STATUSES:
            prediction = await self._poll(prediction)

        return self._parse_prediction(prediction)

    async def _poll(self, prediction: dict) -> dict:
        """Poll a prediction until it reaches a terminal status."""
        client = await self._get_client()
        status_url = (prediction.get("urls") or {}).get("get") or (
            f"{REPLICATE_API_BASE}/predictions/{prediction.get('id', '')}"
        )

        started = time.monotonic()
        interval = self.poll_interval

        while self.max_wait is None or time.monotonic() - started < self.max_wait:
            await asyncio.sleep(interval)

            try:
                response = await client.get(status_url, headers=self._headers())
            except httpx.HTTPError as e:
                raise ServiceError(f"Replicate status check failed: {e}") from e

            if response.status_code != 200:
                raise ServiceError(
                    f"Replicate status check failed ({response.status_code}): {response.text[:200]}",
                    status_code=response.status_code,
                )

            prediction = self._decode_prediction(response)
            status = prediction.get("status", "")
            if status in TERMINAL_STATUSES:
                return prediction

            elapsed = time.monotonic() - started
            logger.info(f"Replicate status: {status} ({elapsed:.0f}s elapsed)")

            # Back off polling interval gradually
            if elapsed > 30:
                interval = max(interval, 5.0)

        raise ServiceError(f"Replicate generation timed out after {self.max_wait}s")

    @staticmethod
    def _decode_prediction(response: httpx.Response) -> dict:
        """Decode a prediction body; it must be a JSON object."""
        try:
            prediction = response.json()
        except ValueError as e:
            raise ServiceError(
                f"Replicate returned an invalid prediction: {e}",
                status_code=response.status_code,
            ) from e
        if not isinstance(prediction, dict):
            raise ServiceError(
                f"Replicate returned an invalid prediction: expected an object, "
                f"got {type(prediction).__name__}",
                status_code=response.status_code,
            )
        return prediction

    @staticmethod
    def _parse_prediction(prediction: dict) -> str:
        """Validate a terminal prediction and extract the image URL."""
        status = prediction.get("status")
        if status != "succeeded":
            error = prediction.get("error") or "no error detail"
            raise ServiceError(f"Image generation {status}: {error}")

        output = prediction.get("output")
        if not output or not isinstance(output, str):
            raise ImageOutputError(
                f"Invalid output from Replicate API: expected an image URL string, "
                f"got {type(output).__name__}"
            )
        return output

    async def _download_image(self, url: str, output_path: Path):
        """Stream an image to disk. A partial file is removed on failure."""
        client = await self._get_client()
        try:
            async with client.stream("GET", url) as response:
                if response.status_code != 200:
                    raise ImageDownloadError(
                        f"Failed to download image: {response.status_code}",
                        status_code=response.status_code,
                    )
                output_path.parent.mkdir(parents=True, exist_ok=True)
                size = 0
                with open(output_path, "wb") as f:
                    async for chunk in response.aiter_bytes():
                        f.write(chunk)
                        size += len(chunk)
        except httpx.HTTPError as e:
            self._discard(output_path)
            raise ImageDownloadError(f"Failed to download image: {e}") from e
        except OSError as e:
            self._discard(output_path)
            raise WorkspaceError(f"Cannot write image {output_path}: {e}") from e

        logger.info(f"Image saved: {output_path} ({size} bytes)")

    @staticmethod
    def _discard(path: Path):
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove partial image {path}: {e}")
