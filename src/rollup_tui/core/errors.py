"""Error taxonomy for the dashboard and RPC failure classification."""

from typing import Optional
from urllib.parse import urlparse

import requests
from web3.exceptions import BadResponseFormat


class ConfigError(Exception):
    """Invalid or missing configuration. Fatal: aborts startup."""


class RpcError(Exception):
    """Base class for a classified, non-fatal RPC failure."""

    kind = "error"

    def __init__(self, message: str = ""):
        """Initialize the error."""
        super().__init__(message)
        self.message = message

    def describe(self) -> str:
        """Short one-line description for logs and the status column."""
        return f"{self.kind}: {self.message}" if self.message else self.kind


class RpcTimeout(RpcError):
    """The endpoint did not answer within the per-call timeout."""

    kind = "timeout"


class RpcConnectionError(RpcError):
    """The endpoint could not be reached."""

    kind = "connection"


class RpcMalformedResponse(RpcError):
    """The endpoint answered but a required field is missing or ill-typed."""

    kind = "malformed"


class RpcProviderError(RpcError):
    """The provider returned an error status or a JSON-RPC error object."""

    kind = "provider"

    def __init__(self, code: Optional[int] = None, message: str = ""):
        """Initialize with the HTTP status or JSON-RPC error code, if known."""
        super().__init__(message)
        self.code = code

    def describe(self) -> str:
        """Include the provider code in the description."""
        head = f"{self.kind} {self.code}" if self.code is not None else self.kind
        return f"{head}: {self.message}" if self.message else head


TIMEOUT_SIGNALS = ("timeout", "timed out")
CONNECTION_SIGNALS = (
    "connection refused",
    "connection reset",
    "connection error",
    "connection aborted",
    "name resolution",
    "no route to host",
    "network unreachable",
    "max retries exceeded",
    "remote end closed",
    "broken pipe",
)
STATUS_SIGNALS = {
    "429": 429,
    "too many requests": 429,
    "500": 500,
    "internal server error": 500,
    "502": 502,
    "bad gateway": 502,
    "503": 503,
    "service unavailable": 503,
    "504": 504,
    "gateway timeout": 504,
}


def sanitize_rpc_url(url: str) -> str:
    """Hide API keys that providers embed in the URL path or query."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return "<invalid url>"
    if not parsed.scheme or not parsed.netloc:
        return url
    base = f"{parsed.scheme}://{parsed.hostname or ''}"
    if parsed.port:
        base += f":{parsed.port}"
    if parsed.path.strip("/") or parsed.query:
        base += "/***"
    return base


def _rpc_error_code(error: Exception) -> Optional[int]:
    """Extract a JSON-RPC error code from a web3 exception, if present."""
    response = getattr(error, "rpc_response", None)
    if isinstance(response, dict):
        payload = response.get("error")
        if isinstance(payload, dict) and isinstance(payload.get("code"), int):
            return payload["code"]

    # Older web3 raised ValueError({"code": ..., "message": ...})
    if error.args and isinstance(error.args[0], dict):
        code = error.args[0].get("code")
        if isinstance(code, int):
            return code
    return None


def classify_rpc_error(error: Exception) -> RpcError:
    """Map any exception raised during a fetch onto the RPC failure taxonomy."""
    if isinstance(error, RpcError):
        return error

    message = str(error)

    # ConnectTimeout is both a Timeout and a ConnectionError
    if isinstance(error, (requests.exceptions.Timeout, TimeoutError)):
        return RpcTimeout(message)
    if isinstance(error, requests.exceptions.HTTPError):
        status = error.response.status_code if error.response is not None else None
        return RpcProviderError(status, message)
    if isinstance(error, (requests.exceptions.ConnectionError, ConnectionError)):
        return RpcConnectionError(message)
    if isinstance(error, BadResponseFormat):
        return RpcMalformedResponse(message)

    code = _rpc_error_code(error)
    if code is not None:
        return RpcProviderError(code, message)

    err_text = message.lower()
    if any(signal in err_text for signal in TIMEOUT_SIGNALS):
        return RpcTimeout(message)
    if any(signal in err_text for signal in CONNECTION_SIGNALS):
        return RpcConnectionError(message)
    for signal, status in STATUS_SIGNALS.items():
        if signal in err_text:
            return RpcProviderError(status, message)

    return RpcProviderError(None, message)
