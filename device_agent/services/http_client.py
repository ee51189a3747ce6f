# http_client.py

from abc import ABC, abstractmethod
from typing import Optional, Tuple
import requests
from device_agent.core.exceptions import HTTPTransportError
import logging


logger = logging.getLogger(__name__)


class HTTPClient(ABC):
    """Minimal POST capability used to reach the provisioning endpoints."""

    @abstractmethod
    def post(self, url: str, content_type: str, body: bytes) -> Tuple[int, bytes]:
        """Return (status code, response body). Raises HTTPTransportError."""
        pass


class RequestsHTTPClient(HTTPClient):
    """HTTPClient over a pooled ``requests.Session``.

    Non-2xx responses are returned, not raised: the platform reports business
    failures inside the body and callers inspect both.
    """

    def __init__(self, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def post(self, url: str, content_type: str, body: bytes) -> Tuple[int, bytes]:
        logger.debug(f"POST {url} ({len(body)} bytes)")
        try:
            resp = self.session.post(
                url,
                data=body,
                headers={"Content-Type": content_type},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise HTTPTransportError(f"POST {url} failed: {e}") from e
        logger.debug(f"POST {url} -> HTTP {resp.status_code}")
        return resp.status_code, resp.content

    def close(self) -> None:
        self.session.close()
