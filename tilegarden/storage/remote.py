"""
Remote storage backend over HTTP.

Talks to a key/value endpoint exposing GET, PUT and DELETE on
`{base_url}/slots/{key}`; a 404 means the slot is empty.
"""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from ..errors import StorageError
from .base import StoragePort


class HttpStorage(StoragePort):
    """
    Stores slots on a remote service.
    """

    def __init__(self, base_url: str, timeout: float = 10.0, client: Optional[httpx.Client] = None):
        """
        Initialize the remote storage.

        Args:
            base_url: Service root URL
            timeout: Request timeout in seconds
            client: Optional preconfigured httpx client (e.g. with a mock transport)
        """
        self.base_url = base_url.rstrip('/')
        self.client = client or httpx.Client(timeout=timeout)

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

    def close(self):
        self.client.close()

    def _url(self, key: str) -> str:
        return f"{self.base_url}/slots/{quote(key, safe='')}"

    def read(self, key: str) -> Optional[bytes]:
        try:
            response = self.client.get(self._url(key))
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return response.content
        except httpx.HTTPStatusError as e:
            raise StorageError(f"Remote read of '{key}' failed: {e}") from e
        except httpx.RequestError as e:
            raise StorageError(f"Failed to connect to remote storage: {e}") from e

    def write(self, key: str, data: bytes) -> None:
        try:
            response = self.client.put(
                self._url(key),
                content=data,
                headers={"Content-Type": "application/octet-stream"}
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise StorageError(f"Remote write of '{key}' failed: {e}") from e
        except httpx.RequestError as e:
            raise StorageError(f"Failed to connect to remote storage: {e}") from e

        logging.debug(f"Uploaded {len(data)} bytes to slot '{key}'")

    def remove(self, key: str) -> None:
        try:
            response = self.client.delete(self._url(key))
            if response.status_code == 404:
                return
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise StorageError(f"Remote delete of '{key}' failed: {e}") from e
        except httpx.RequestError as e:
            raise StorageError(f"Failed to connect to remote storage: {e}") from e
