"""Tests for the HTTP backend client with retry logic."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock, patch

import httpx
import pytest

from cryptosdk.errors import ApiError, BackendError, KeyNotFoundError, NetworkError
from cryptosdk.http.api_client import ApiClient, encode_path_segment
from cryptosdk.types import ClientConfig, KeyOperationType


@pytest.fixture
def config() -> ClientConfig:
    """Create a test client configuration."""
    return ClientConfig(
        base_url="https://test.example.com",
        timeout=5000,
        max_retries=2,
        retry_delay=100,  # Short delay for testing
        retry_on_status_codes=(429, 503),
    )


@pytest.fixture
def api_client(config: ClientConfig) -> ApiClient:
    """Create an API client for testing."""
    return ApiClient(config)


class RecordingTransport:
    """Stands in for httpx.Client.request, replaying canned responses."""

    def __init__(self, *responses: httpx.Response) -> None:
        self.responses = list(responses)
        self.requests: list[dict[str, Any]] = []

    def __call__(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        self.requests.append({"method": method, "path": path, **kwargs})
        return self.responses.pop(0)


def install(api_client: ApiClient, transport: Any) -> None:
    mock_client = MagicMock()
    mock_client.is_closed = False
    mock_client.request = transport
    api_client._client = mock_client


class TestRetryOnStatusCode:
    """Tests for retry behavior on retryable status codes."""

    def test_retry_on_429_status_code(self, api_client: ApiClient) -> None:
        """Test that 429 status code triggers retry with exponential backoff."""
        transport = RecordingTransport(
            httpx.Response(429, text="Rate limited"),
            httpx.Response(429, text="Rate limited"),
            httpx.Response(200, json={"ok": True}),
        )
        install(api_client, transport)

        with patch("time.sleep") as mock_sleep:
            response = api_client._request("GET", "/test")

        assert response.status_code == 200
        assert len(transport.requests) == 3
        # First retry: 100 * 2^0 / 1000 = 0.1, second: 100 * 2^1 / 1000 = 0.2
        assert mock_sleep.call_count == 2
        mock_sleep.assert_any_call(0.1)
        mock_sleep.assert_any_call(0.2)

    def test_exhausted_retries_on_status_code_raises_error(self, api_client: ApiClient) -> None:
        """Test that exhausting retries on retryable status raises ApiError."""

        def always_429(*args: Any, **kwargs: Any) -> httpx.Response:
            return httpx.Response(429, json={"message": "Too many requests"})

        install(api_client, always_429)

        with patch("time.sleep"), pytest.raises(ApiError) as exc_info:
            api_client._request("GET", "/test")

        assert exc_info.value.status_code == 429
        assert "Too many requests" in str(exc_info.value)

    def test_non_retryable_status_is_not_retried(self, api_client: ApiClient) -> None:
        transport = RecordingTransport(httpx.Response(500, json={"error": "boom"}))
        install(api_client, transport)

        with pytest.raises(ApiError) as exc_info:
            api_client._request("GET", "/test")

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "boom"
        assert len(transport.requests) == 1


class TestNetworkErrors:
    """Tests for connection failures."""

    def test_network_error_after_retries(self, api_client: ApiClient) -> None:
        calls = 0

        def failing(*args: Any, **kwargs: Any) -> httpx.Response:
            nonlocal calls
            calls += 1
            raise httpx.ConnectError("connection refused")

        install(api_client, failing)

        with patch("time.sleep"), pytest.raises(NetworkError, match="connection refused"):
            api_client._request("GET", "/test")

        assert calls == 3

    def test_recovers_after_timeout(self, api_client: ApiClient) -> None:
        responses: list[Any] = [
            httpx.ReadTimeout("timed out"),
            httpx.Response(200, json={"ok": True}),
        ]

        def flaky(*args: Any, **kwargs: Any) -> httpx.Response:
            item = responses.pop(0)
            if isinstance(item, Exception):
                raise item
            return item

        install(api_client, flaky)

        with patch("time.sleep"):
            assert api_client._request("GET", "/test").status_code == 200

    def test_network_error_is_backend_error(self) -> None:
        assert issubclass(NetworkError, BackendError)
        assert issubclass(ApiError, BackendError)


class TestErrorResponseHandling:
    """Tests for error response handling."""

    def test_non_json_error_response(self, api_client: ApiClient) -> None:
        install(api_client, RecordingTransport(httpx.Response(500, text="Internal Server Error")))
        with pytest.raises(ApiError) as exc_info:
            api_client._request("GET", "/test")
        assert "Internal Server Error" in str(exc_info.value)

    def test_empty_error_response_body(self, api_client: ApiClient) -> None:
        install(api_client, RecordingTransport(httpx.Response(502, content=b"")))
        with pytest.raises(ApiError) as exc_info:
            api_client._request("GET", "/test")
        assert exc_info.value.message == "HTTP 502"

    def test_404_on_key_path_is_key_not_found(self, api_client: ApiClient) -> None:
        install(
            api_client,
            RecordingTransport(httpx.Response(404, json={"error": "Key not found"})),
        )
        with pytest.raises(KeyNotFoundError) as exc_info:
            api_client.key_op("jwt", KeyOperationType.READ, "K1", None)
        assert exc_info.value.key_name == "K1"

    def test_404_elsewhere_is_api_error(self, api_client: ApiClient) -> None:
        install(api_client, RecordingTransport(httpx.Response(404, json={"error": "no route"})))
        with pytest.raises(ApiError) as exc_info:
            api_client.fetch_config("reg")
        assert exc_info.value.status_code == 404


class TestBackendOperations:
    """Tests for the request shapes of each backend operation."""

    def test_fetch_config(self, api_client: ApiClient) -> None:
        transport = RecordingTransport(
            httpx.Response(200, json={"api_version": "1.0", "features": ["AES-256-GCM"]})
        )
        install(api_client, transport)

        config = api_client.fetch_config("reg-token")

        assert config["api_version"] == "1.0"
        request = transport.requests[0]
        assert (request["method"], request["path"]) == ("GET", "/v1/config")
        assert request["headers"] == {"X-Registration-Token": "reg-token"}

    def test_fetch_config_rejects_non_object(self, api_client: ApiClient) -> None:
        install(api_client, RecordingTransport(httpx.Response(200, json=[1, 2])))
        with pytest.raises(BackendError):
            api_client.fetch_config("reg")

    def test_authenticate(self, api_client: ApiClient) -> None:
        transport = RecordingTransport(httpx.Response(200, json={"token": "jwt-abc"}))
        install(api_client, transport)

        assert api_client.authenticate("alice", "pw") == "jwt-abc"
        request = transport.requests[0]
        assert (request["method"], request["path"]) == ("POST", "/login")
        assert request["json"] == {"username": "alice", "password": "pw"}

    def test_authenticate_without_token(self, api_client: ApiClient) -> None:
        install(api_client, RecordingTransport(httpx.Response(200, json={})))
        with pytest.raises(BackendError, match="did not contain a token"):
            api_client.authenticate("alice", "pw")

    def test_authenticate_unauthorized(self, api_client: ApiClient) -> None:
        install(
            api_client,
            RecordingTransport(httpx.Response(401, json={"error": "Invalid credentials"})),
        )
        with pytest.raises(ApiError) as exc_info:
            api_client.authenticate("alice", "wrong")
        assert exc_info.value.status_code == 401

    def test_create_sends_hex_material(self, api_client: ApiClient) -> None:
        transport = RecordingTransport(httpx.Response(201, json={"status": "success"}))
        install(api_client, transport)

        response = api_client.key_op("jwt", KeyOperationType.CREATE, "K1", b"\x01\x02")

        assert response.success
        request = transport.requests[0]
        assert (request["method"], request["path"]) == ("POST", "/api/keys")
        assert request["json"] == {"name": "K1", "key_material": "0102"}
        assert request["headers"] == {"Authorization": "Bearer jwt"}

    def test_create_without_material(self, api_client: ApiClient) -> None:
        transport = RecordingTransport(httpx.Response(201, json={"id": 7, "name": "K1"}))
        install(api_client, transport)
        api_client.key_op("jwt", KeyOperationType.CREATE, "K1", None)
        assert transport.requests[0]["json"] == {"name": "K1"}

    def test_read_json_material(self, api_client: ApiClient) -> None:
        transport = RecordingTransport(
            httpx.Response(200, json={"key_material": "30313233"})
        )
        install(api_client, transport)

        response = api_client.key_op("jwt", KeyOperationType.READ, "my key/1", None)

        assert response.key_material == b"0123"
        request = transport.requests[0]
        assert (request["method"], request["path"]) == ("GET", "/api/keys/my%20key%2F1")

    def test_read_plain_text_material(self, api_client: ApiClient) -> None:
        install(api_client, RecordingTransport(httpx.Response(200, text="0a0b0c\n")))
        response = api_client.key_op("jwt", KeyOperationType.READ, "K1", None)
        assert response.key_material == b"\x0a\x0b\x0c"

    def test_read_invalid_hex(self, api_client: ApiClient) -> None:
        install(api_client, RecordingTransport(httpx.Response(200, json={"key_material": "zz"})))
        with pytest.raises(BackendError, match="Failed to decode key material"):
            api_client.key_op("jwt", KeyOperationType.READ, "K1", None)

    def test_read_without_material(self, api_client: ApiClient) -> None:
        install(api_client, RecordingTransport(httpx.Response(200, json={"name": "K1"})))
        response = api_client.key_op("jwt", KeyOperationType.READ, "K1", None)
        assert response.key_material is None

    def test_update_and_delete(self, api_client: ApiClient) -> None:
        transport = RecordingTransport(
            httpx.Response(200, json={"status": "success"}),
            httpx.Response(204),
        )
        install(api_client, transport)

        assert api_client.key_op("jwt", KeyOperationType.UPDATE, "K1", b"\xff").success
        assert api_client.key_op("jwt", KeyOperationType.DELETE, "K1", None).success

        update, delete = transport.requests
        assert (update["method"], update["path"], update["json"]) == (
            "PUT",
            "/api/keys/K1",
            {"key_material": "ff"},
        )
        assert (delete["method"], delete["path"]) == ("DELETE", "/api/keys/K1")

    def test_failure_status_in_acknowledgment(self, api_client: ApiClient) -> None:
        install(
            api_client,
            RecordingTransport(httpx.Response(200, json={"status": "failure", "message": "no"})),
        )
        response = api_client.key_op("jwt", KeyOperationType.DELETE, "K1", None)
        assert not response.success
        assert response.message == "no"


class TestClientLifecycle:
    """Tests for HTTP client creation and closing."""

    def test_lazy_client_creation(self, api_client: ApiClient) -> None:
        client = api_client._get_client()
        assert isinstance(client, httpx.Client)
        assert api_client._get_client() is client
        api_client.close()
        assert api_client._client is None

    def test_close_without_client(self, api_client: ApiClient) -> None:
        api_client.close()
        assert api_client._client is None

    def test_endpoint(self, api_client: ApiClient) -> None:
        assert api_client.endpoint == "https://test.example.com"


class TestEncodePathSegment:
    def test_encodes_reserved_characters(self) -> None:
        assert encode_path_segment("a/b c?d") == "a%2Fb%20c%3Fd"
