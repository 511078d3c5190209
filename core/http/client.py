"""
HTTP Client

Transport settings for the web3 HTTPProvider behind the registry client.
One pooled requests Session per client, shared by every JSON-RPC call the
provider makes; no retries or backoff are added here.

Node URLs often embed API keys (userinfo or query string), so only
redacted URLs are ever logged or put into error messages.
"""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import urlsplit, urlunsplit

import requests
from web3 import HTTPProvider

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


def redact_url(url: str) -> str:
    """Drop credentials, query and fragment so a URL is safe to log."""
    parts = urlsplit(url)
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    return urlunsplit((parts.scheme, host, parts.path, "", ""))


class HttpClient:
    """
    Owns the requests Session and per-request options for a JSON-RPC node.

    Usage:
        with HttpClient(timeout=10) as http:
            w3 = Web3(http.provider(rpc_url))
            chain_id = w3.eth.chain_id
    """

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        headers: Optional[dict[str, str]] = None,
        proxy: Optional[str] = None,
    ) -> None:
        """
        Args:
            timeout: Request timeout in seconds
            headers: Extra headers sent with every request (e.g. an auth token)
            proxy: Proxy URL for both http and https
        """
        self.timeout = timeout
        self.headers = {**JSON_HEADERS, **(headers or {})}
        self.proxy = proxy
        self._session: Optional[requests.Session] = None

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update(self.headers)
        return self._session

    @property
    def request_kwargs(self) -> dict[str, Any]:
        """Keyword arguments passed to every ``session.post`` the provider makes."""
        kwargs: dict[str, Any] = {"timeout": self.timeout, "headers": dict(self.headers)}
        if self.proxy:
            kwargs["proxies"] = {"http": self.proxy, "https": self.proxy}
        return kwargs

    def provider(self, url: str) -> HTTPProvider:
        """An HTTPProvider for ``url`` that posts through this client's session."""
        logger.debug("Using JSON-RPC endpoint %s", redact_url(url))
        return HTTPProvider(url, request_kwargs=self.request_kwargs, session=self.session)

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
