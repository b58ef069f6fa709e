from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, Mapping, Optional, Protocol

from webreq.core.cookies import SharedCookieJar
from webreq.core.verbs import HttpVerb


@dataclass(frozen=True, slots=True)
class TransportResponse:
    """Response handed to the success continuation.

    Security notes:
    - Treat `headers` and `body` as untrusted.

    `body` is open; whoever receives it is responsible for closing it.
    """

    status: int
    headers: Mapping[str, str]
    body: BinaryIO
    reason: str = ""


class TransportRequest(Protocol):
    """One in-flight request created by a Transport.

    Both methods block; the dispatcher runs them on its worker pool.
    """

    content_type: Optional[str]
    cookie_jar: Optional[SharedCookieJar]

    def open_body(self) -> BinaryIO:
        """Writable stream for the request body. Closing it releases it."""
        ...

    def get_response(self) -> TransportResponse:
        """Send the request and wait for status and headers.

        Raises TransportError subclasses on failure.
        """
        ...


class Transport(Protocol):
    """Connection capability the dispatcher drives."""

    def create_request(self, url: str, verb: HttpVerb) -> TransportRequest: ...
