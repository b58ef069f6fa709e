from __future__ import annotations

from typing import Any, Mapping, Optional


class WebReqError(Exception):
    """
    Base exception for all webreq failures.
    """

    pass


class PreconditionError(WebReqError, ValueError):
    """
    Raised synchronously when a call is unusable before any I/O happens.
    """

    pass


class MissingParametersError(PreconditionError):
    """
    Raised when the parameter bag itself is absent (not merely empty).
    """

    pass


class InvalidUrlError(PreconditionError):
    """
    Raised for blank or non-absolute http(s) URLs.
    """

    pass


class UnsupportedVerbError(PreconditionError):
    """
    Raised when a verb is unknown or not allowed for the operation.
    """

    pass


class ParameterEncodingError(PreconditionError):
    """
    Raised when a parameter value cannot be turned into text.
    """

    pass


class InvalidFileError(PreconditionError):
    """
    Raised when a file to upload is malformed.
    """

    pass


class TransportError(WebReqError):
    """Failure reported while talking to the remote end.

    Always delivered through the failure continuation and the failure hooks,
    never raised on the caller's thread.
    """

    def __init__(self, message: str, *, url: Optional[str] = None, verb: Any = None):
        super().__init__(message)
        self.url = url
        self.verb = verb


class ConnectFailedError(TransportError):
    """
    DNS failure, refused or reset connection, timeout.
    """

    pass


class HttpStatusError(TransportError):
    """Server answered with a non-success status.

    Security notes:
    - `body` is untrusted and truncated to the configured error body cap.
    """

    def __init__(
        self,
        message: str,
        *,
        status: int,
        reason: str = "",
        headers: Optional[Mapping[str, str]] = None,
        body: bytes = b"",
        url: Optional[str] = None,
        verb: Any = None,
    ):
        super().__init__(message, url=url, verb=verb)
        self.status = int(status)
        self.reason = reason
        self.headers = dict(headers or {})
        self.body = body


class RequestBodyError(TransportError):
    """
    Writing the request body failed (e.g. an upload stream could not be read).
    """

    pass
