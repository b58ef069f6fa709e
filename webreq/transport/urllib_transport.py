"""Default transport built on urllib.request.

Security notes:
- Uses the default SSL context (verification ON).
- Request bodies are buffered in memory until the response is requested.
"""
from __future__ import annotations

import http.client
import io
import logging
import ssl
from typing import BinaryIO, List, Optional
from urllib.error import HTTPError, URLError
from urllib.request import BaseHandler, HTTPCookieProcessor, HTTPSHandler, Request, build_opener

from webreq.core.cookies import SharedCookieJar
from webreq.core.errors import ConnectFailedError, HttpStatusError, TransportError
from webreq.core.querystring import strip_query
from webreq.core.verbs import HttpVerb
from webreq.transport.base import TransportResponse

log = logging.getLogger("webreq.transport")


class _RequestBody(io.BytesIO):
    """Write buffer that keeps its bytes after being closed."""

    def __init__(self) -> None:
        super().__init__()
        self.payload: Optional[bytes] = None

    def close(self) -> None:
        if not self.closed:
            self.payload = self.getvalue()
        super().close()


class UrllibRequest:
    """A single urllib request; see TransportRequest."""

    def __init__(
        self,
        transport: "UrllibTransport",
        url: str,
        verb: HttpVerb,
    ):
        self.url = url
        self.verb = verb
        self.content_type: Optional[str] = None
        self.cookie_jar: Optional[SharedCookieJar] = None
        self._transport = transport
        self._body: Optional[_RequestBody] = None

    def open_body(self) -> BinaryIO:
        if self._body is not None:
            raise TransportError("request body already opened", url=self.url, verb=self.verb)
        self._body = _RequestBody()
        return self._body

    def _payload(self) -> Optional[bytes]:
        if self._body is None:
            return None
        if not self._body.closed:
            self._body.close()
        return self._body.payload

    def get_response(self) -> TransportResponse:
        req = Request(self.url, data=self._payload(), method=self.verb.value)
        if self.content_type and req.data is not None:
            req.add_header("Content-Type", self.content_type)
        if self._transport.user_agent:
            req.add_header("User-Agent", self._transport.user_agent)

        opener = self._transport.build_opener(self.cookie_jar)
        try:
            resp = opener.open(req, timeout=self._transport.timeout_seconds)
        except HTTPError as e:
            try:
                body = e.read(self._transport.max_error_body_bytes) if e.fp is not None else b""
            finally:
                e.close()
            raise HttpStatusError(
                f"{self.verb.value} {strip_query(self.url)} returned {e.code}",
                status=e.code,
                reason=str(e.reason or ""),
                headers=dict(e.headers.items()) if e.headers is not None else {},
                body=body,
                url=self.url,
                verb=self.verb,
            ) from e
        except URLError as e:
            raise ConnectFailedError(
                f"{self.verb.value} {strip_query(self.url)} failed: {e.reason}",
                url=self.url,
                verb=self.verb,
            ) from e
        except (OSError, http.client.HTTPException, ValueError) as e:
            # timeouts, resets, and URLs http.client cannot put on the wire
            # (UnicodeEncodeError for non-ASCII paths)
            raise ConnectFailedError(
                f"{self.verb.value} {strip_query(self.url)} failed: {e}",
                url=self.url,
                verb=self.verb,
            ) from e

        return TransportResponse(
            status=int(resp.status),
            headers=resp.headers,
            body=resp,
            reason=str(getattr(resp, "reason", "") or ""),
        )


class UrllibTransport:
    """Transport backed by urllib.request.

    Redirects are followed by urllib; non-2xx/3xx answers raise
    HttpStatusError. Cookies go through `HTTPCookieProcessor` bound to the
    request's shared jar, so redirects see them too.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 30.0,
        user_agent: Optional[str] = None,
        max_error_body_bytes: int = 64 * 1024,
        ssl_context: Optional[ssl.SSLContext] = None,
    ):
        self.timeout_seconds = float(timeout_seconds)
        self.user_agent = user_agent
        self.max_error_body_bytes = max(1, int(max_error_body_bytes))
        self._ssl_context = ssl_context or ssl.create_default_context()

    def build_opener(self, cookie_jar: Optional[SharedCookieJar]):
        handlers: List[BaseHandler] = [HTTPSHandler(context=self._ssl_context)]
        if cookie_jar is not None:
            handlers.append(HTTPCookieProcessor(cookie_jar))
        return build_opener(*handlers)

    def create_request(self, url: str, verb: HttpVerb) -> UrllibRequest:
        log.debug("transport_request", extra={"method": verb.value, "url": strip_query(url)})
        return UrllibRequest(self, url, verb)
