"""Figma REST API client and the transpiler's remote callbacks.

``FigmaClient`` wraps the handful of endpoints the converter needs.
``RemoteNodeResolver`` and ``ImageProvider`` adapt it to the callback
contracts of the document and transpiler packages: they never raise, and
report a failed lookup as empty bytes.
"""

import base64
import json
from typing import Any

import httpx

from figmaqml.config import EnvVar, get_environment, get_figma_api_url
from figmaqml.core import get_logger

logger = get_logger(__name__)

PLACEHOLDER = "placeholder"

# 1x1 fully transparent PNG
TRANSPARENT_PNG = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


class FigmaError(Exception):
    """Error talking to the Figma API."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class FigmaClient:
    """HTTP client for the Figma REST API.

    Example:
        >>> client = FigmaClient(token="figd_...")
        >>> project = client.get_file("AbC123")
        >>> project["name"]
        'Design system'

    Attributes:
        base_url: API root, e.g. ``https://api.figma.com/v1``.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ):
        """Initialize the client.

        Args:
            token: Personal access token. Defaults to FIGMA_TOKEN.
            base_url: API root. Defaults to FIGMA_API_URL.
            timeout: Request timeout in seconds. Defaults to FIGMA_TIMEOUT.
        """
        self.base_url = get_figma_api_url(base_url)
        self.timeout = get_environment(EnvVar.FIGMA_TIMEOUT, timeout)
        self._token = get_environment(EnvVar.FIGMA_TOKEN, token) or ""
        self._client = httpx.Client(timeout=self.timeout)

    def __del__(self) -> None:
        """Clean up HTTP client."""
        if hasattr(self, "_client"):
            self._client.close()

    def _request(self, url: str, params: dict[str, Any] | None = None, authorized: bool = True):
        headers = {"X-Figma-Token": self._token} if authorized else {}
        try:
            response = self._client.get(url, params=params, headers=headers)
        except httpx.TimeoutException as e:
            raise FigmaError(f"Figma request timed out: {e}") from e
        except httpx.RequestError as e:
            raise FigmaError(f"Figma request failed: {e}") from e

        if response.status_code != 200:
            raise FigmaError(
                f"Figma returned {response.status_code}",
                status_code=response.status_code,
                response_body=response.text[:500],
            )
        return response

    def _json(self, url: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        response = self._request(url, params)
        try:
            data = json.loads(response.content)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise FigmaError(f"Invalid JSON from {url}") from e
        if not isinstance(data, dict):
            raise FigmaError(f"Unexpected payload from {url}")
        return data

    def get_file(self, file_key: str) -> dict[str, Any]:
        """Fetch a complete design document.

        Raises:
            FigmaError: On transport failure, non-200 status or invalid JSON.
        """
        return self._json(f"{self.base_url}/files/{file_key}")

    def get_nodes(self, file_key: str, ids: list[str]) -> bytes:
        """Fetch node subtrees as raw JSON bytes.

        The payload has the shape ``{"nodes": {<id>: {"document": <tree>}}}``.
        """
        response = self._request(f"{self.base_url}/files/{file_key}/nodes", {"ids": ",".join(ids)})
        return response.content

    def get_image_fills(self, file_key: str) -> dict[str, str]:
        """Download URLs of every image fill in a document, keyed by image ref."""
        data = self._json(f"{self.base_url}/files/{file_key}/images")
        return dict(data.get("meta", {}).get("images", {}) or {})

    def get_render_urls(
        self,
        file_key: str,
        ids: list[str],
        scale: float = 1.0,
        image_format: str = "png",
    ) -> dict[str, str | None]:
        """Ask the API to rasterize nodes and return the image URLs.

        Raises:
            FigmaError: If the API reports a render error.
        """
        data = self._json(
            f"{self.base_url}/images/{file_key}",
            {"ids": ",".join(ids), "scale": scale, "format": image_format},
        )
        if data.get("err"):
            raise FigmaError(f"Render failed: {data['err']}")
        return dict(data.get("images", {}) or {})

    def download(self, url: str) -> bytes:
        """Download an image from a URL returned by the API."""
        return self._request(url, authorized=False).content


def data_uri(data: bytes) -> bytes:
    """Encode image bytes as a ``data:`` URI."""
    mime = "image/jpeg" if data.startswith(b"\xff\xd8") else "image/png"
    return f"data:{mime};base64,".encode("ascii") + base64.b64encode(data)


def offline_image(image: str, is_rendering: bool) -> bytes:
    """``image_provider`` callback for documents converted without API access.

    Only the placeholder is available, so every image falls back to it.
    """
    if image == PLACEHOLDER:
        return f"data:image/png;base64,{TRANSPARENT_PNG}".encode("ascii")
    return b""


class RemoteNodeResolver:
    """``resolve_remote_node`` callback backed by the nodes endpoint.

    Example:
        >>> catalogue = components(project, report, RemoteNodeResolver(client, "AbC123"))
    """

    def __init__(self, client: FigmaClient, file_key: str):
        self.client = client
        self.file_key = file_key

    def __call__(self, component_id: str) -> bytes:
        try:
            return self.client.get_nodes(self.file_key, [component_id])
        except FigmaError as e:
            logger.warning(f"Cannot fetch component {component_id}: {e}")
            return b""


class ImageProvider:
    """``image_provider`` callback backed by the images endpoints.

    Image fills are looked up in the document's fill table; pre-rendered
    nodes are rasterized on demand. Results are cached per run, and the
    ``placeholder`` id is served without a request.

    Attributes:
        scale: Rasterization scale for pre-rendered nodes.
    """

    def __init__(self, client: FigmaClient, file_key: str, scale: float | None = None):
        self.client = client
        self.file_key = file_key
        self.scale = get_environment(EnvVar.FIGMAQML_IMAGE_SCALE, scale)
        self._fills: dict[str, str] | None = None
        self._cache: dict[tuple[str, bool], bytes] = {}

    def __call__(self, image: str, is_rendering: bool) -> bytes:
        if image == PLACEHOLDER:
            return offline_image(image, is_rendering)
        key = (image, is_rendering)
        if key not in self._cache:
            try:
                self._cache[key] = self._fetch(image, is_rendering)
            except FigmaError as e:
                logger.warning(f"Cannot fetch image {image}: {e}")
                self._cache[key] = b""
        return self._cache[key]

    def _fetch(self, image: str, is_rendering: bool) -> bytes:
        if is_rendering:
            url = self.client.get_render_urls(self.file_key, [image], self.scale).get(image)
        else:
            if self._fills is None:
                self._fills = self.client.get_image_fills(self.file_key)
            url = self._fills.get(image)
        if not url:
            logger.debug(f"No image URL for {image}")
            return b""
        return data_uri(self.client.download(url))


__all__ = [
    "FigmaClient",
    "FigmaError",
    "ImageProvider",
    "PLACEHOLDER",
    "RemoteNodeResolver",
    "TRANSPARENT_PNG",
    "data_uri",
    "offline_image",
]
