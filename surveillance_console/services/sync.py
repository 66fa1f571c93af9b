"""
Remote registry synchronization for the Surveillance Console.
The registry document lives as a single file on a WebDAV server (Nextcloud
and friends). Transfers are all-or-nothing; any transport problem surfaces
as TransportError.
"""
import logging

import httpx

from ..errors import TransportError

logger = logging.getLogger('surveillance_console.sync')


class WebDavSyncBackend:
    """Fetch and store the registry document over WebDAV"""

    def __init__(self, url: str, username: str = '', password: str = '',
                 timeout: float = 10.0, transport=None):
        self.url = url
        self.auth = (username, password) if username else None
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_config(cls, config):
        """Build a backend, or None when no WebDAV URL is configured"""
        if not config.WEBDAV_URL:
            return None
        return cls(
            config.WEBDAV_URL,
            config.WEBDAV_USERNAME,
            config.WEBDAV_PASSWORD,
            timeout=config.WEBDAV_TIMEOUT,
        )

    def _client(self):
        return httpx.Client(auth=self.auth, timeout=self.timeout, transport=self._transport)

    def fetch(self) -> bytes:
        logger.info(f'Fetching registry from {self.url}')
        try:
            with self._client() as client:
                response = client.get(self.url)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f'fetch failed: HTTP {e.response.status_code} from {self.url}'
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f'fetch failed: {e}') from e
        return response.content

    def store(self, payload: bytes):
        logger.info(f'Storing registry to {self.url} ({len(payload)} bytes)')
        try:
            with self._client() as client:
                response = client.put(
                    self.url,
                    content=payload,
                    headers={'Content-Type': 'application/json'},
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f'store failed: HTTP {e.response.status_code} from {self.url}'
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f'store failed: {e}') from e
