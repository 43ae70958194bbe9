"""
Treasury Snapshot Exceptions - Custom exception hierarchy.

Every error below is fatal for a snapshot run. The one recoverable
condition (a token contract failing its symbol() call) is modelled as a
SymbolLookup result, not as an exception.

SnapshotError (base)
├── ConfigError     - missing required configuration (pre-flight)
├── NetworkError    - RPC unreachable or malformed response
├── TransportError  - explorer HTTP failure
├── ApiError        - explorer application-level failure
└── FormatError     - malformed numeric/timestamp input
"""

from datetime import datetime, timezone
from typing import Any, Optional


class SnapshotError(Exception):
    """Base exception for all treasury snapshot errors."""

    def __init__(
        self,
        message: str,
        chain: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.chain = chain
        self.original_error = original_error
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "chain": self.chain,
            "original_error": str(self.original_error) if self.original_error else None,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]
        if self.chain:
            parts.append(f"[chain={self.chain}]")
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


class ConfigError(SnapshotError):
    """Required configuration is missing or invalid."""

    def __init__(
        self,
        message: str,
        missing_keys: Optional[list[str]] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, None, original_error, context)
        self.missing_keys = missing_keys or []

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["missing_keys"] = self.missing_keys
        return data


class NetworkError(SnapshotError):
    """RPC endpoint unreachable or returned malformed data."""

    def __init__(
        self,
        message: str,
        chain: Optional[str] = None,
        method: Optional[str] = None,
        endpoint: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, chain, original_error, context)
        self.method = method
        self.endpoint = endpoint

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "method": self.method,
            "endpoint": self.endpoint,
        })
        return data


class TransportError(SnapshotError):
    """HTTP-level failure talking to the block explorer."""

    def __init__(
        self,
        message: str,
        chain: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, chain, original_error, context)
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "status_code": self.status_code,
            "response_body": self.response_body,
            "request_url": self.request_url,
        })
        return data


class ApiError(SnapshotError):
    """Explorer answered with an application-level failure flag."""

    def __init__(
        self,
        message: str,
        chain: Optional[str] = None,
        provider_message: Optional[str] = None,
        payload_excerpt: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, chain, original_error, context)
        self.provider_message = provider_message
        self.payload_excerpt = payload_excerpt

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "provider_message": self.provider_message,
            "payload_excerpt": self.payload_excerpt,
        })
        return data


class FormatError(SnapshotError):
    """Malformed numeric or timestamp input."""

    def __init__(
        self,
        message: str,
        value: Optional[Any] = None,
        field_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, None, original_error, context)
        self.value = value
        self.field_name = field_name

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "value": str(self.value)[:120] if self.value is not None else None,
            "field_name": self.field_name,
        })
        return data
