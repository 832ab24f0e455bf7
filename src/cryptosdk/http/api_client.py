"""HTTP backend client with retry logic for the Crypto SDK."""

from __future__ import annotations

import json
import time
from typing import Any, cast
from urllib.parse import quote

import httpx

from ..crypto import from_hex, to_hex
from ..errors import ApiError, BackendError, InvalidArgumentError, KeyNotFoundError, NetworkError
from ..types import ClientConfig, KeyOperationType, KeyOpResponse


def encode_path_segment(value: str) -> str:
    """URL-encode a path segment for use in API URLs.

    Args:
        value: The value to encode.

    Returns:
        URL-encoded string safe for use in URL paths.
    """
    return quote(value, safe="")


class ApiClient:
    """HTTP client for the key-management API with automatic retry logic.

    Implements the :class:`~cryptosdk.backend.Backend` protocol.

    Attributes:
        config: Client configuration.
    """

    def __init__(self, config: ClientConfig | None = None) -> None:
        """Initialize the API client.

        Args:
            config: Client configuration. Defaults to ClientConfig().
        """
        self.config = config or ClientConfig()
        self._client: httpx.Client | None = None

    @property
    def endpoint(self) -> str:
        return self.config.base_url

    def _get_client(self) -> httpx.Client:
        """Get or create the HTTP client.

        Returns:
            The HTTP client instance.
        """
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                base_url=self.config.base_url,
                headers={"Content-Type": "application/json"},
                timeout=httpx.Timeout(self.config.timeout / 1000),
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> ApiClient:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        key_name: str | None = None,
    ) -> httpx.Response:
        """Make an HTTP request with retry logic.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE).
            path: API path.
            json: JSON body for the request.
            headers: Extra request headers.
            key_name: Key addressed by the request, used to report 404s.

        Returns:
            The HTTP response.

        Raises:
            ApiError: If the request fails after all retries.
            NetworkError: If there's a network communication failure.
            KeyNotFoundError: If a key request returns 404.
        """
        client = self._get_client()
        last_error: Exception | None = None

        for attempt in range(self.config.max_retries + 1):
            try:
                response = client.request(method, path, json=json, headers=headers)

                # Check if we should retry based on status code
                if (
                    response.status_code in self.config.retry_on_status_codes
                    and attempt < self.config.max_retries
                ):
                    delay = self.config.retry_delay * (2**attempt) / 1000
                    time.sleep(delay)
                    continue

                if response.status_code >= 400:
                    self._handle_error_response(response, key_name)

                return response

            except (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError) as e:
                last_error = e
                if attempt < self.config.max_retries:
                    delay = self.config.retry_delay * (2**attempt) / 1000
                    time.sleep(delay)
                    continue
                raise NetworkError(f"Network error: {e}") from e

        # Should not reach here, but just in case
        if last_error:  # pragma: no cover
            raise NetworkError(
                f"Request failed after {self.config.max_retries} retries"
            ) from last_error
        raise NetworkError(
            f"Request failed after {self.config.max_retries} retries"
        )  # pragma: no cover

    def _handle_error_response(self, response: httpx.Response, key_name: str | None) -> None:
        """Handle HTTP error responses.

        Args:
            response: The HTTP response.
            key_name: Key addressed by the request, if any.

        Raises:
            KeyNotFoundError: If a key request returns 404.
            ApiError: For other API errors.
        """
        try:
            data = response.json()
            message = data.get("message", data.get("error", response.text))
        except (ValueError, json.JSONDecodeError, AttributeError):
            message = response.text or f"HTTP {response.status_code}"

        if response.status_code == 404 and key_name is not None:
            raise KeyNotFoundError(key_name, message)

        raise ApiError(response.status_code, message)

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except (ValueError, json.JSONDecodeError) as e:
            raise BackendError(f"Invalid JSON in backend response: {e}") from e

    # Backend operations

    def fetch_config(self, registration_token: str) -> dict[str, Any]:
        """Register the application and fetch the server configuration.

        Args:
            registration_token: Application registration token.

        Returns:
            The configuration document.
        """
        response = self._request(
            "GET", "/v1/config", headers={"X-Registration-Token": registration_token}
        )
        data = self._json(response)
        if not isinstance(data, dict):
            raise BackendError("Configuration response is not a JSON object")
        return cast(dict[str, Any], data)

    def authenticate(self, identity: str, secret: str) -> str:
        """Log in and return the bearer token.

        Args:
            identity: User or application identity.
            secret: The identity's secret.

        Returns:
            The bearer token.
        """
        response = self._request(
            "POST", "/login", json={"username": identity, "password": secret}
        )
        data = self._json(response)
        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise BackendError("Login response did not contain a token")
        return str(token)

    def key_op(
        self,
        token: str,
        op: KeyOperationType,
        name: str,
        data: bytes | None,
    ) -> KeyOpResponse:
        """Perform a key operation.

        Args:
            token: Session bearer token.
            op: The operation.
            name: Key name.
            data: Key material for CREATE/UPDATE, if supplied.

        Returns:
            The backend response. READ responses carry the key material.
        """
        op = KeyOperationType(op)
        headers = {"Authorization": f"Bearer {token}"}
        path = f"/api/keys/{encode_path_segment(name)}"

        if op is KeyOperationType.CREATE:
            body: dict[str, Any] = {"name": name}
            if data:
                body["key_material"] = to_hex(bytes(data))
            response = self._request(
                "POST", "/api/keys", json=body, headers=headers, key_name=name
            )
            return self._acknowledgment(response)

        if op is KeyOperationType.READ:
            response = self._request("GET", path, headers=headers, key_name=name)
            return KeyOpResponse(key_material=self._read_material(response))

        if op is KeyOperationType.UPDATE:
            body = {"key_material": to_hex(bytes(data))} if data else {}
            response = self._request("PUT", path, json=body, headers=headers, key_name=name)
            return self._acknowledgment(response)

        if op is KeyOperationType.DELETE:
            response = self._request("DELETE", path, headers=headers, key_name=name)
            return self._acknowledgment(response)

        raise InvalidArgumentError(f"Unsupported key operation: {op}")  # pragma: no cover

    def _acknowledgment(self, response: httpx.Response) -> KeyOpResponse:
        if not response.content:
            return KeyOpResponse()
        try:
            data = response.json()
        except (ValueError, json.JSONDecodeError):
            return KeyOpResponse(message=response.text)
        if not isinstance(data, dict):
            return KeyOpResponse()
        status = data.get("status", "success")
        return KeyOpResponse(success=status == "success", message=data.get("message"))

    def _read_material(self, response: httpx.Response) -> bytes | None:
        """Extract key material from a READ response.

        Accepts a JSON ``{"key_material": "<hex>"}`` or a plain-text hex body.
        """
        data: Any
        if "json" in response.headers.get("content-type", ""):
            data = self._json(response)
            data = data.get("key_material") if isinstance(data, dict) else None
        else:
            data = response.text
        if not data:
            return None
        try:
            return from_hex(str(data))
        except ValueError as e:
            raise BackendError(f"Failed to decode key material: {e}") from e
