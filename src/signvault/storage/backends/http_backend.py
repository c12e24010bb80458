"""
HTTP Storage Backend
====================

Stores artifacts on a remote HTTP endpoint using ``requests``.

- save:   POST {post_url}/{key} with the raw artifact bytes as body
- load:   GET  {get_url}/{key}
- exists: HEAD {get_url}/{key}
- delete: DELETE {post_url}/{key}

Usage:
    from signvault.storage.backends.http_backend import HttpStorageBackend

    backend = HttpStorageBackend(base_url="https://vault.example.com/files/")
    backend.write("settings.json", data)

    # Separate read and write endpoints
    backend = HttpStorageBackend(
        get_url="https://cdn.example.com/files/",
        post_url="https://upload.example.com/files/",
    )
"""

import logging
from typing import Dict, Optional
from urllib.parse import quote

import requests

from ...error_handling import (
    HttpResponseError,
    NotFoundError,
    VaultStorageError,
    with_error_handling,
)
from .base import StorageBackend

logger = logging.getLogger(__name__)


class HttpStorageBackend(StorageBackend):
    """
    HTTP storage backend.

    Non-2xx responses surface as ``HttpResponseError`` carrying the status
    code and URL; a 404 on read surfaces as ``NotFoundError``. Transport
    failures (DNS, connection, timeout) surface as ``VaultStorageError``.
    No request is retried.

    Attributes:
        get_url: Base URL artifacts are read from
        post_url: Base URL artifacts are written to
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        get_url: Optional[str] = None,
        post_url: Optional[str] = None,
        timeout: float = 30.0,
        headers: Optional[Dict[str, str]] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize HTTP storage backend.

        Args:
            base_url: Base URL used for both reads and writes
            get_url: Base URL for reads (overrides base_url)
            post_url: Base URL for writes (overrides base_url)
            timeout: Per-request timeout in seconds
            headers: Extra headers sent with every request (e.g. auth)
            session: Pre-configured requests session (not closed by close())
        """
        self.get_url = get_url or base_url
        self.post_url = post_url or base_url
        if not self.get_url or not self.post_url:
            raise ValueError("HttpStorageBackend requires base_url or both get_url and post_url")
        if timeout is not None and timeout <= 0:
            raise ValueError("timeout must be positive")

        self.timeout = timeout
        self._owns_session = session is None
        self._session = session if session is not None else requests.Session()
        if headers:
            self._session.headers.update(headers)

        logger.debug(
            f"HttpStorageBackend initialized: get={self.get_url}, post={self.post_url}"
        )

    @staticmethod
    def _join(base: str, key: str) -> str:
        return f"{base.rstrip('/')}/{quote(key, safe='/')}"

    def describe(self, key: str) -> str:
        return self._join(self.get_url, key)

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            return self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise VaultStorageError(
                f"HTTP {method} failed: {e}", {"url": url, "method": method}
            ) from e

    @with_error_handling(VaultStorageError)
    def write(self, key: str, data: bytes) -> str:
        """POST artifact bytes."""
        url = self._join(self.post_url, key)
        response = self._request(
            "POST",
            url,
            data=data,
            headers={"Content-Type": "application/octet-stream"},
        )
        if not response.ok:
            raise HttpResponseError(response.status_code, url, {"method": "POST"})

        logger.debug(f"Posted {len(data)} bytes to {url} ({response.status_code})")
        return url

    @with_error_handling(VaultStorageError)
    def read(self, key: str) -> bytes:
        """GET artifact bytes."""
        url = self._join(self.get_url, key)
        response = self._request("GET", url)
        if response.status_code == 404:
            raise NotFoundError(f"{url} not found.", {"url": url, "status_code": 404})
        if not response.ok:
            raise HttpResponseError(response.status_code, url, {"method": "GET"})
        return response.content

    @with_error_handling(VaultStorageError)
    def exists(self, key: str) -> bool:
        """HEAD the artifact URL."""
        url = self._join(self.get_url, key)
        response = self._request("HEAD", url)
        if response.status_code == 404:
            return False
        if not response.ok:
            raise HttpResponseError(response.status_code, url, {"method": "HEAD"})
        return True

    @with_error_handling(VaultStorageError)
    def delete(self, key: str) -> bool:
        """DELETE the artifact URL."""
        url = self._join(self.post_url, key)
        response = self._request("DELETE", url)
        if response.status_code == 404:
            return False
        if not response.ok:
            raise HttpResponseError(response.status_code, url, {"method": "DELETE"})
        return True

    def close(self) -> None:
        """Close the session if this backend created it."""
        if self._owns_session:
            self._session.close()
