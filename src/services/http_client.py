"""Shared async HTTP client for the Intercom and GoHighLevel REST APIs."""

from typing import Any, Optional
import httpx
from src.utils.errors import UpstreamAPIError
from src.utils.logging import get_structured_logger, truncate_text

logger = get_structured_logger(__name__)


class APIClient:
    """Thin wrapper over httpx.AsyncClient that raises typed errors on non-2xx responses."""

    base_url: str = ""
    error_class: type[UpstreamAPIError] = UpstreamAPIError

    def __init__(
        self,
        access_token: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.default_headers(access_token),
            timeout=timeout,
            transport=transport,
        )

    def default_headers(self, access_token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """Send a request and return the decoded JSON body ({} when empty)."""
        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.HTTPError as e:
            raise self.error_class(
                f"{self.error_class.service} request failed: {method} {path}: {e}",
                url=f"{self.base_url}{path}",
            ) from e

        if response.is_error:
            error = self.error_class(
                f"{self.error_class.service} API error: {method} {path} returned {response.status_code}",
                status_code=response.status_code,
                url=str(response.request.url),
                body=response.text,
            )
            logger.warning(
                "Upstream API error response",
                method=method,
                **error.log_context()
            )
            raise error

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise self.error_class(
                f"{self.error_class.service} returned a non-JSON body for {method} {path}",
                status_code=response.status_code,
                url=str(response.request.url),
                body=truncate_text(response.text),
            ) from e
