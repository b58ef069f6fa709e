"""webreq: callback-style asynchronous HTTP client.

Requests run on a worker pool; results are handed to success/failure
continuations instead of being returned to the caller.

Security notes:
- Treat server responses as untrusted input.
- Parameter values, cookie values and file bytes are never logged.
"""
from __future__ import annotations

from webreq.client.http import WebReqClient
from webreq.config import ClientConfig
from webreq.core.cookies import SharedCookieJar
from webreq.core.errors import (
    ConnectFailedError,
    HttpStatusError,
    InvalidFileError,
    InvalidUrlError,
    MissingParametersError,
    ParameterEncodingError,
    PreconditionError,
    RequestBodyError,
    TransportError,
    UnsupportedVerbError,
    WebReqError,
)
from webreq.core.files import NamedFileStream
from webreq.core.params import ParameterBag
from webreq.core.verbs import HttpVerb

__version__ = "0.1.0"

__all__ = [
    "ClientConfig",
    "ConnectFailedError",
    "HttpStatusError",
    "HttpVerb",
    "InvalidFileError",
    "InvalidUrlError",
    "MissingParametersError",
    "NamedFileStream",
    "ParameterBag",
    "ParameterEncodingError",
    "PreconditionError",
    "RequestBodyError",
    "SharedCookieJar",
    "TransportError",
    "UnsupportedVerbError",
    "WebReqClient",
    "WebReqError",
]
