# bms_dashboard/services/fetcher.py

from __future__ import annotations

import logging
from typing import Optional, Protocol

import requests

from bms_dashboard.errors import BodyDecodeError, TransportError

logger = logging.getLogger(__name__)


class EndpointFetcher(Protocol):
    def get(self, address: str, resource: str) -> str:
        ...


def build_url(address: str, resource: str) -> str:
    base = address.strip().rstrip("/")
    if "://" not in base:
        base = "http://" + base
    return f"{base}/{resource.lstrip('/')}"


def _declared_charset(headers) -> Optional[str]:
    """Charset named in Content-Type, or None when the header names none.

    requests falls back to ISO-8859-1 for any text/* response without a charset,
    which would accept every byte sequence; the controller pages are UTF-8.
    """
    content_type = headers.get("content-type") or ""
    if "charset" not in content_type.lower():
        return None
    return requests.utils.get_encoding_from_headers(headers)


class HttpFetcher:
    """
    Single blocking GET against a controller page.

    No retries. Without a configured timeout the transport default applies.
    """

    def __init__(self, timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session

    # ------------------------------------------------------------------
    def _request(self, session: requests.Session, url: str) -> requests.Response:
        try:
            resp = session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportError(url, str(exc)) from exc

        if not 200 <= resp.status_code < 300:
            raise TransportError(url, f"HTTP {resp.status_code}")
        return resp

    # ------------------------------------------------------------------
    def get(self, address: str, resource: str) -> str:
        url = build_url(address, resource)
        logger.debug("GET %s", url)

        if self.session is not None:
            resp = self._request(self.session, url)
        else:
            with requests.Session() as session:
                resp = self._request(session, url)

        encoding = _declared_charset(resp.headers) or "utf-8"
        try:
            return resp.content.decode(encoding)
        except (UnicodeDecodeError, LookupError) as exc:
            raise BodyDecodeError(url, encoding) from exc
