"""
Failure classification for the fetch layer.

Every failed fetch is reduced to a CrawlError so the crawler can decide
whether to retry, whether to escalate to the browser tier, and how to
count the failure in run statistics.
"""

import asyncio
import socket
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from leadcrawl.constants import MAX_ERROR_MESSAGE_LENGTH


class ErrorType(str, Enum):
    """Failure taxonomy."""
    TIMEOUT = "timeout"
    DNS = "dns"
    CONNECTION = "connection"
    BOT_CHALLENGE = "bot_challenge"
    HTTP = "http"
    UNKNOWN = "unknown"


# Transport error codes, as reported by resolvers and sockets
DNS_CODES = ("ENOTFOUND", "EAI_AGAIN", "EAI_NONAME")
CONNECTION_REFUSED_CODES = ("ECONNREFUSED",)
CONNECTION_RESET_CODES = ("ECONNRESET", "EPIPE")
TIMEOUT_CODES = ("ETIMEDOUT",)

# Substrings found in resolver/browser messages for a nonexistent host
DNS_MESSAGE_MARKERS = (
    "name or service not known",
    "nodename nor servname provided",
    "temporary failure in name resolution",
    "getaddrinfo failed",
    "no address associated with hostname",
    "net::err_name_not_resolved",
)

CONNECTION_MESSAGE_MARKERS = (
    "connection refused",
    "connection reset",
    "broken pipe",
    "net::err_connection_refused",
    "net::err_connection_reset",
    "net::err_connection_closed",
)


class CrawlError(Exception):
    """A classified fetch failure.

    Raised internally by the fetch tiers and returned to callers as a value,
    so it doubles as an exception and a statistics record.
    """

    def __init__(
        self,
        error_type: ErrorType,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.error_type = error_type
        self.message = message
        self.code = code
        self.status_code = status_code

    @property
    def label(self) -> str:
        """Short tag for log lines, e.g. ``dns:ENOTFOUND``."""
        if self.code:
            return f"{self.error_type.value}:{self.code}"
        return self.error_type.value

    @property
    def code_key(self) -> Optional[str]:
        """Key used when histogramming failures by code."""
        if self.code:
            return self.code
        if self.status_code is not None:
            return f"HTTP_{self.status_code}"
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.error_type.value,
            "code": self.code,
            "status_code": self.status_code,
            "message": self.message,
        }

    def __repr__(self) -> str:
        return f"CrawlError({self.label!r}, {self.message!r})"


def _error_code(error: BaseException) -> Optional[str]:
    """Find a symbolic error code on the exception or anything it wraps."""
    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        code = getattr(current, "code", None)
        if isinstance(code, str) and code.isupper():
            return code
        if isinstance(current, socket.gaierror):
            return "ENOTFOUND"
        if isinstance(current, ConnectionRefusedError):
            return "ECONNREFUSED"
        if isinstance(current, ConnectionResetError):
            return "ECONNRESET"
        if isinstance(current, BrokenPipeError):
            return "EPIPE"
        current = current.__cause__ or current.__context__
    return None


def classify_error(error: BaseException) -> CrawlError:
    """Map a raw transport, browser or HTTP failure into the taxonomy.

    Args:
        error: Exception raised while fetching

    Returns:
        CrawlError describing the failure
    """
    if isinstance(error, CrawlError):
        return error

    message = str(error) or error.__class__.__name__
    lowered = message.lower()
    code = _error_code(error)

    if code in DNS_CODES or any(m in lowered for m in DNS_MESSAGE_MARKERS):
        return CrawlError(ErrorType.DNS, "Domain not found", code=code or "ENOTFOUND")

    if code in CONNECTION_REFUSED_CODES:
        return CrawlError(ErrorType.CONNECTION, "Connection refused", code=code)
    if code in CONNECTION_RESET_CODES:
        return CrawlError(ErrorType.CONNECTION, "Connection reset", code=code)

    if (
        code in TIMEOUT_CODES
        or isinstance(error, (httpx.TimeoutException, asyncio.TimeoutError))
        or "timeout" in lowered
        or "timed out" in lowered
    ):
        return CrawlError(ErrorType.TIMEOUT, "Request timeout", code=code)

    if isinstance(error, httpx.ConnectError) or any(m in lowered for m in CONNECTION_MESSAGE_MARKERS):
        return CrawlError(ErrorType.CONNECTION, "Connection failed", code=code)

    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        if status == 403:
            return CrawlError(ErrorType.BOT_CHALLENGE, "Bot protection", status_code=status)
        return CrawlError(ErrorType.HTTP, f"HTTP {status}", status_code=status)

    if "403" in message or "cloudflare" in lowered:
        return CrawlError(ErrorType.BOT_CHALLENGE, "Bot protection")

    return CrawlError(ErrorType.UNKNOWN, message[:MAX_ERROR_MESSAGE_LENGTH], code=code)


def is_retriable(error: CrawlError) -> bool:
    """Whether the same fetch tier is worth trying again."""
    return error.error_type in (ErrorType.TIMEOUT, ErrorType.CONNECTION)


def should_skip_browser(error: CrawlError) -> bool:
    """Whether escalating to the browser tier is pointless.

    A domain that does not resolve will not resolve in a browser either.
    """
    return error.error_type == ErrorType.DNS
