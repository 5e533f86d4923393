"""
HTTP transport.

The engine never touches the network; the orchestrator asks a Transport for
a FetchResult and hands the body on. Anything with a matching `fetch`
method works, which is how the tests run without a network.
"""

import re
from typing import Optional, Protocol

import requests

from .exceptions import SiteUnreachable
from .schemas import FetchResult
from .logger import get_module_logger

logger = get_module_logger("fetcher")

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/125.0.0.0 Safari/537.36"
)

HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.8,ar;q=0.6,es;q=0.6,fr;q=0.5",
    "Connection": "keep-alive",
}

_DOUBLE_SLASH_RE = re.compile(r"(?<!:)/{2,}")


class Transport(Protocol):
    def fetch(
        self,
        url: str,
        method: str = "GET",
        data: Optional[dict] = None,
        referrer: Optional[str] = None,
    ) -> FetchResult:
        ...


def collapse_slashes(url: str) -> str:
    """
    Collapse repeated slashes in the path ("site//series/x" → "site/series/x").

    Site base URLs end in "/" and work paths often start with one; joining
    them naively doubles it. The scheme separator is left alone.
    """
    scheme, sep, rest = url.partition("://")
    if not sep:
        return _DOUBLE_SLASH_RE.sub("/", url)
    return f"{scheme}://{_DOUBLE_SLASH_RE.sub('/', rest)}"


class RequestsTransport:
    """Transport backed by one requests.Session (cookies survive across calls)."""

    def __init__(self, user_agent: Optional[str] = None, timeout: float = 15.0):
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(HEADERS)
        self.session.headers["User-Agent"] = user_agent or DEFAULT_USER_AGENT

    def fetch(
        self,
        url: str,
        method: str = "GET",
        data: Optional[dict] = None,
        referrer: Optional[str] = None,
    ) -> FetchResult:
        """
        Perform one request and return what came back.

        Redirects are followed; `final_url` is where they ended, which the
        guard compares with `url`. Non-2xx responses are returned, not raised.

        Raises:
            SiteUnreachable: connection-level failure (DNS, timeout, TLS)
        """
        url = collapse_slashes(url)
        headers = {"Referer": referrer} if referrer else None

        logger.debug(f"{method} {url}")
        try:
            response = self.session.request(
                method,
                url,
                data=data,
                headers=headers,
                timeout=self.timeout,
                allow_redirects=True,
            )
        except requests.RequestException as e:
            raise SiteUnreachable(url, 0, {"error": str(e)}) from e

        # Servers often omit the charset; requests then assumes ISO-8859-1
        if response.encoding is None or response.encoding.lower() == "iso-8859-1":
            response.encoding = response.apparent_encoding

        logger.debug(f"{response.status_code} {response.url} ({len(response.content)} bytes)")
        return FetchResult(status=response.status_code, final_url=response.url, body=response.text)

    def close(self) -> None:
        self.session.close()
