from __future__ import annotations

from enum import Enum
from typing import FrozenSet, Union

from webreq.core.errors import UnsupportedVerbError


class HttpVerb(str, Enum):
    """Closed set of HTTP methods the client issues."""

    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @property
    def has_body(self) -> bool:
        """True when parameters travel in the request body instead of the URL."""
        return self in _BODY_VERBS

    @classmethod
    def coerce(cls, value: Union["HttpVerb", str]) -> "HttpVerb":
        """Accept a member or a case-insensitive method name."""

        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise UnsupportedVerbError(f"unsupported HTTP verb: {value!r}")


_BODY_VERBS: FrozenSet[HttpVerb] = frozenset(
    {HttpVerb.POST, HttpVerb.PUT, HttpVerb.PATCH, HttpVerb.DELETE}
)

UPLOAD_VERBS: FrozenSet[HttpVerb] = frozenset({HttpVerb.POST, HttpVerb.PUT})
