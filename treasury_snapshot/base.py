"""
Base HTTP Client - shared aiohttp plumbing for RPC and explorer clients.

Owns the session lifecycle, bounds every call with a timeout and maps
transport failures onto the caller's error type. No retries: any failure
is terminal for the run.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Optional

import aiohttp

from treasury_snapshot.exceptions import SnapshotError


logger = logging.getLogger(__name__)


class BaseHttpClient(ABC):
    """
    Abstract base for JSON-over-HTTP clients.

    Subclasses implement:
    1. name - identifier used in log prefixes
    2. _request_failed() - build the error raised on transport failure
    """

    DEFAULT_TIMEOUT = 30.0
    MAX_ERROR_BODY = 500

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._timeout = timeout
        self._session = session
        self._owns_session = session is None
        self._last_latency_ms: Optional[float] = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier for log messages."""
        pass

    @abstractmethod
    def _request_failed(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> SnapshotError:
        """Build the error raised when a request cannot be completed."""
        pass

    @property
    def last_latency_ms(self) -> Optional[float]:
        """Latency of the most recent completed request."""
        return self._last_latency_ms

    # ─────────────────────────────────────────────────────────────
    # HTTP Helpers
    # ─────────────────────────────────────────────────────────────

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers=self._get_default_headers(),
            )
            self._owns_session = True
        return self._session

    def _get_default_headers(self) -> dict[str, str]:
        """Get default HTTP headers."""
        return {
            "Accept": "application/json",
            "User-Agent": "treasury-snapshot/1.0",
        }

    async def _make_request(
        self,
        method: str,
        url: str,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[Any] = None,
    ) -> Any:
        """
        Make an HTTP request and decode the JSON body.

        The URL is reported without query parameters so credentials
        passed as params never reach logs or error payloads.
        """
        session = await self._get_session()

        start_time = time.time()
        try:
            async with session.request(
                method,
                url,
                params=params,
                json=json_body,
            ) as response:
                self._last_latency_ms = (time.time() - start_time) * 1000

                if response.status >= 400:
                    body = await response.text()
                    raise self._request_failed(
                        message=f"HTTP {response.status}",
                        status_code=response.status,
                        response_body=body[:self.MAX_ERROR_BODY],
                        request_url=url,
                    )

                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise self._request_failed(
                        message=f"Malformed JSON response: {e}",
                        status_code=response.status,
                        request_url=url,
                        original_error=e,
                    )

        except asyncio.TimeoutError as e:
            raise self._request_failed(
                message=f"Timeout after {self._timeout:.1f}s",
                request_url=url,
                original_error=e,
            )
        except aiohttp.ClientError as e:
            raise self._request_failed(
                message=f"Connection error: {e}",
                request_url=url,
                original_error=e,
            )

    # ─────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────

    async def close(self) -> None:
        """Close resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "BaseHttpClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.name})>"
