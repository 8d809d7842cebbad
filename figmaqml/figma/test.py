"""Tests for the Figma client.

Unit tests are mocked (no network).
Integration tests require FIGMA_TOKEN and FIGMA_TEST_FILE_KEY.
"""

import base64
import json
import os
from dataclasses import dataclass

import httpx
import pytest

from figmaqml.figma import (
    TRANSPARENT_PNG,
    FigmaClient,
    FigmaError,
    ImageProvider,
    RemoteNodeResolver,
    data_uri,
    offline_image,
)

PNG = b"\x89PNG\r\n\x1a\nfake"


@dataclass
class MockResponse:
    """Mock HTTP response for testing."""

    status_code: int
    content: bytes = b""
    text: str = ""


def _json(payload):
    return MockResponse(status_code=200, content=json.dumps(payload).encode("utf-8"))


class Router:
    """Fake ``httpx.Client.get`` answering by URL suffix and recording calls."""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def __call__(self, url, params=None, headers=None, **kwargs):
        self.calls.append((url, params, headers))
        for suffix, response in self.routes.items():
            if url.endswith(suffix):
                if isinstance(response, Exception):
                    raise response
                return response
        return MockResponse(status_code=404, text="Not found")


@pytest.fixture
def client():
    return FigmaClient(token="secret", base_url="https://figma.test/v1/", timeout=5.0)


# =============================================================================
# Unit Tests (Mocked)
# =============================================================================


class TestFigmaClient:
    """Tests for FigmaClient with mocked HTTP."""

    @pytest.mark.unit
    def test_settings(self, client):
        assert client.base_url == "https://figma.test/v1"
        assert client.timeout == 5.0

    @pytest.mark.unit
    def test_get_file(self, client, monkeypatch, sample_project):
        """get_file returns the parsed document and sends the token."""
        router = Router({"/files/KEY": _json(sample_project)})
        monkeypatch.setattr(client._client, "get", router)

        project = client.get_file("KEY")

        assert project["name"] == "Sample"
        url, _, headers = router.calls[0]
        assert url == "https://figma.test/v1/files/KEY"
        assert headers == {"X-Figma-Token": "secret"}

    @pytest.mark.unit
    def test_error_status(self, client, monkeypatch):
        """Non-200 responses raise FigmaError with the status."""
        router = Router({"/files/KEY": MockResponse(status_code=403, text="Invalid token")})
        monkeypatch.setattr(client._client, "get", router)

        with pytest.raises(FigmaError) as exc_info:
            client.get_file("KEY")
        assert exc_info.value.status_code == 403
        assert exc_info.value.response_body == "Invalid token"

    @pytest.mark.unit
    def test_invalid_json(self, client, monkeypatch):
        router = Router({"/files/KEY": MockResponse(status_code=200, content=b"<html>")})
        monkeypatch.setattr(client._client, "get", router)

        with pytest.raises(FigmaError, match="Invalid JSON"):
            client.get_file("KEY")

    @pytest.mark.unit
    def test_timeout(self, client, monkeypatch):
        """Transport timeouts become FigmaError."""
        router = Router({"/files/KEY": httpx.ReadTimeout("slow")})
        monkeypatch.setattr(client._client, "get", router)

        with pytest.raises(FigmaError, match="timed out"):
            client.get_file("KEY")

    @pytest.mark.unit
    def test_connection_error(self, client, monkeypatch):
        router = Router({"/files/KEY": httpx.ConnectError("Connection refused")})
        monkeypatch.setattr(client._client, "get", router)

        with pytest.raises(FigmaError, match="request failed"):
            client.get_file("KEY")

    @pytest.mark.unit
    def test_get_nodes_returns_raw_bytes(self, client, monkeypatch):
        router = Router({"/files/KEY/nodes": MockResponse(status_code=200, content=b'{"nodes": {}}')})
        monkeypatch.setattr(client._client, "get", router)

        assert client.get_nodes("KEY", ["1:2", "3:4"]) == b'{"nodes": {}}'
        assert router.calls[0][1] == {"ids": "1:2,3:4"}

    @pytest.mark.unit
    def test_get_image_fills(self, client, monkeypatch):
        router = Router({"/files/KEY/images": _json({"meta": {"images": {"ref": "https://cdn/ref"}}})})
        monkeypatch.setattr(client._client, "get", router)

        assert client.get_image_fills("KEY") == {"ref": "https://cdn/ref"}

    @pytest.mark.unit
    def test_get_render_urls(self, client, monkeypatch):
        router = Router({"/images/KEY": _json({"err": None, "images": {"1:2": "https://cdn/1"}})})
        monkeypatch.setattr(client._client, "get", router)

        assert client.get_render_urls("KEY", ["1:2"], scale=2.0) == {"1:2": "https://cdn/1"}
        assert router.calls[0][1] == {"ids": "1:2", "scale": 2.0, "format": "png"}

    @pytest.mark.unit
    def test_render_error(self, client, monkeypatch):
        router = Router({"/images/KEY": _json({"err": "Invalid node"})})
        monkeypatch.setattr(client._client, "get", router)

        with pytest.raises(FigmaError, match="Render failed: Invalid node"):
            client.get_render_urls("KEY", ["1:2"])

    @pytest.mark.unit
    def test_download_is_unauthenticated(self, client, monkeypatch):
        """Image downloads do not forward the API token."""
        router = Router({"/cdn/1": MockResponse(status_code=200, content=PNG)})
        monkeypatch.setattr(client._client, "get", router)

        assert client.download("https://s3.test/cdn/1") == PNG
        assert router.calls[0][2] == {}


class TestCallbacks:
    """Tests for the transpiler callback adapters."""

    @pytest.mark.unit
    def test_data_uri(self):
        assert data_uri(PNG) == b"data:image/png;base64," + base64.b64encode(PNG)
        assert data_uri(b"\xff\xd8\xff").startswith(b"data:image/jpeg;base64,")

    @pytest.mark.unit
    def test_offline_image(self):
        """Without API access only the placeholder resolves."""
        assert offline_image("placeholder", False).startswith(b"data:image/png;base64,")
        assert offline_image("ref", False) == b""
        assert offline_image("1:2", True) == b""

    @pytest.mark.unit
    def test_node_resolver(self, client, monkeypatch):
        router = Router({"/files/KEY/nodes": MockResponse(status_code=200, content=b"{}")})
        monkeypatch.setattr(client._client, "get", router)

        assert RemoteNodeResolver(client, "KEY")("1:2") == b"{}"

    @pytest.mark.unit
    def test_node_resolver_failure_is_empty(self, client, monkeypatch):
        """API failures follow the empty-bytes contract."""
        monkeypatch.setattr(client._client, "get", Router({}))

        assert RemoteNodeResolver(client, "KEY")("1:2") == b""

    @pytest.mark.unit
    def test_image_fill(self, client, monkeypatch):
        """Image fills resolve through the fill table, fetched once."""
        router = Router(
            {
                "/files/KEY/images": _json({"meta": {"images": {"a": "https://cdn/a", "b": "https://cdn/b"}}}),
                "/cdn/a": MockResponse(status_code=200, content=PNG),
                "/cdn/b": MockResponse(status_code=200, content=PNG),
            }
        )
        monkeypatch.setattr(client._client, "get", router)
        provider = ImageProvider(client, "KEY")

        assert provider("a", False) == data_uri(PNG)
        assert provider("b", False) == data_uri(PNG)
        assert provider("a", False) == data_uri(PNG)
        assert [call[0] for call in router.calls].count("https://figma.test/v1/files/KEY/images") == 1
        assert len(router.calls) == 3

    @pytest.mark.unit
    def test_rendered_node(self, client, monkeypatch):
        """Pre-rendered nodes are rasterized at the configured scale."""
        router = Router(
            {
                "/images/KEY": _json({"images": {"1:2": "https://cdn/r"}}),
                "/cdn/r": MockResponse(status_code=200, content=PNG),
            }
        )
        monkeypatch.setattr(client._client, "get", router)
        provider = ImageProvider(client, "KEY", scale=2.0)

        assert provider("1:2", True) == data_uri(PNG)
        assert router.calls[0][1]["scale"] == 2.0

    @pytest.mark.unit
    def test_unknown_image_is_empty(self, client, monkeypatch):
        router = Router({"/files/KEY/images": _json({"meta": {"images": {}}})})
        monkeypatch.setattr(client._client, "get", router)

        assert ImageProvider(client, "KEY")("missing", False) == b""

    @pytest.mark.unit
    def test_failed_download_is_empty(self, client, monkeypatch):
        router = Router({"/files/KEY/images": _json({"meta": {"images": {"a": "https://cdn/a"}}})})
        monkeypatch.setattr(client._client, "get", router)

        assert ImageProvider(client, "KEY")("a", False) == b""

    @pytest.mark.unit
    def test_placeholder_needs_no_request(self, client, monkeypatch):
        router = Router({})
        monkeypatch.setattr(client._client, "get", router)

        data = ImageProvider(client, "KEY")("placeholder", False)
        assert data == f"data:image/png;base64,{TRANSPARENT_PNG}".encode("ascii")
        assert router.calls == []


# =============================================================================
# Integration Tests (Live API)
# =============================================================================


@pytest.mark.figma
def test_live_file():
    """A real document can be fetched when credentials are configured."""
    file_key = os.environ.get("FIGMA_TEST_FILE_KEY")
    if not file_key:
        pytest.skip("FIGMA_TEST_FILE_KEY not set")
    project = FigmaClient().get_file(file_key)
    assert "document" in project
