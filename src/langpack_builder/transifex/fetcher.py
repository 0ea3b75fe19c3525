"""
HTTP access to the translation service.

This module builds the request targets for module details and per-language
translation files, and performs single authenticated GET requests with
httpx. Nothing is retried: failures are raised immediately and the caller
decides whether to skip the item or abort the run.
"""

from __future__ import annotations

import base64
import json
import logging
from collections.abc import AsyncGenerator
from typing import TYPE_CHECKING

import httpx

from ..packs.normalizer import PAYLOAD_ENCODING, LineSplitter
from ..utils.core.exceptions import (
    MalformedTargetError,
    NetworkError,
    ResponseParseError,
)

if TYPE_CHECKING:
    from types import TracebackType

logger = logging.getLogger(__name__)

# The service answers 403 to requests without a browser-like agent
DEFAULT_USER_AGENT = "Mozilla/4.0 (compatible; MSIE 6.0; Windows NT 5.0)"

DETAILS_PATH = "{module}/?details"
TRANSLATION_PATH = "{module}/translation/{language}/?file"


def encode_credential(credential: str) -> str:
    """
    Encode a ``username:password`` credential as a Basic authorization token.

    Args:
        credential: Plain credential string

    Returns:
        Base64 token to place after ``Basic`` in the Authorization header
    """
    return base64.b64encode(credential.encode("utf-8")).decode("ascii")


def ensure_trailing_slash(url: str) -> str:
    """Return the URL with exactly the separator the path templates expect."""
    return url if url.endswith("/") else f"{url}/"


class TranslationFetcher:
    """Async client for the translation service REST endpoints."""

    def __init__(
        self,
        base_url: str,
        auth_token: str,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the fetcher; the HTTP client is opened on context entry."""
        self.base_url: str = ensure_trailing_slash(base_url)
        self.auth_token: str = auth_token
        self.timeout: float = timeout
        self.user_agent: str = user_agent
        self._transport: httpx.AsyncBaseTransport | None = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def headers(self) -> dict[str, str]:
        """Headers sent with every request."""
        return {
            "Authorization": f"Basic {self.auth_token}",
            "User-Agent": self.user_agent,
        }

    async def __aenter__(self) -> TranslationFetcher:
        """Enter async context and initialize HTTP client."""
        self._client = httpx.AsyncClient(
            headers=self.headers,
            timeout=self.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit async context and cleanup HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _require_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(
                "TranslationFetcher not initialized. Use as async context manager."
            )
        return self._client

    def _build_url(self, raw_url: str) -> httpx.URL:
        """
        Parse a request target.

        Raises:
            MalformedTargetError: If the target is not an absolute http(s) URL
        """
        try:
            url = httpx.URL(raw_url)
        except httpx.InvalidURL as e:
            raise MalformedTargetError(raw_url, str(e)) from e

        if url.scheme not in ("http", "https"):
            raise MalformedTargetError(raw_url, f"unsupported scheme {url.scheme!r}")
        if not url.host:
            raise MalformedTargetError(raw_url, "missing host")
        return url

    def details_url(self, module: str) -> httpx.URL:
        """Target describing a module and its available languages."""
        return self._build_url(self.base_url + DETAILS_PATH.format(module=module))

    def translation_url(self, module: str, language: str) -> httpx.URL:
        """Target of the translation file of one module and language."""
        return self._build_url(
            self.base_url + TRANSLATION_PATH.format(module=module, language=language)
        )

    async def fetch_details(self, url: httpx.URL) -> object:
        """
        Download and decode a module details document.

        Args:
            url: Target built by ``details_url``

        Returns:
            The decoded JSON document

        Raises:
            NetworkError: On connection, timeout or HTTP status failures
            ResponseParseError: If the body is not valid JSON
        """
        client = self._require_client()
        logger.debug(f"Fetching module details from {url}")

        try:
            response = await client.get(url)
            _ = response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NetworkError(
                f"HTTP {e.response.status_code} for {url}",
                context=str(url),
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Request to {url} failed: {e}", context=str(url)) from e

        try:
            return json.loads(response.content.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            position = getattr(e, "pos", getattr(e, "start", None))
            logger.error(f"JSON parsing error, position: {position}")
            raise ResponseParseError(
                f"Invalid JSON in response from {url}: {e}", context=str(url)
            ) from e

    async def stream_translation(self, url: httpx.URL) -> AsyncGenerator[str, None]:
        """
        Stream the lines of a translation file.

        The body is decoded as ISO-8859-1 chunk by chunk; lines are yielded
        without their terminators as soon as they are complete.

        Raises:
            NetworkError: On connection, timeout, HTTP status or read failures
        """
        client = self._require_client()
        logger.debug(f"Language URL: {url}")
        splitter = LineSplitter()

        try:
            async with client.stream("GET", url) as response:
                _ = response.raise_for_status()
                async for chunk in response.aiter_bytes():
                    for line in splitter.feed(chunk.decode(PAYLOAD_ENCODING)):
                        yield line
        except httpx.HTTPStatusError as e:
            raise NetworkError(
                f"HTTP {e.response.status_code} for {url}",
                context=str(url),
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Request to {url} failed: {e}", context=str(url)) from e

        for line in splitter.flush():
            yield line
