"""Query-string and form-body serialization.

Percent-encoding follows RFC 3986 data escaping: everything except the
unreserved characters (letters, digits, ``-._~``) is escaped, including
space and ``&``.
"""
from __future__ import annotations

from urllib.parse import quote, urlsplit, urlunsplit

from webreq.core.errors import InvalidUrlError
from webreq.core.params import ParameterBag, ParamsLike

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def percent_encode(value: str) -> str:
    """Escape a single name or value."""
    return quote(value, safe="")


def serialize_query_string(params: ParamsLike | None) -> str:
    """Serialize parameters to ``name=value&name=value``.

    Raises MissingParametersError for None; an empty bag yields ``""``.

    Time: O(total length of names and values)
    """

    bag = ParameterBag.from_value(params)
    return "&".join(f"{percent_encode(name)}={percent_encode(value)}" for name, value in bag)


def validate_url(url: str) -> str:
    """Return the stripped URL or raise InvalidUrlError."""

    if not isinstance(url, str) or not url.strip():
        raise InvalidUrlError("url is empty")
    url = url.strip()
    parts = urlsplit(url)
    if parts.scheme.lower() not in {"http", "https"} or not parts.netloc:
        raise InvalidUrlError(f"url must be an absolute http(s) URL: {url!r}")
    return url


def merge_query(url: str, params: ParamsLike | None) -> str:
    """Append serialized parameters to the URL's existing query.

    Exactly one ``&`` joins the two parts; it is omitted when either side is
    empty. The fragment is preserved.
    """

    parts = urlsplit(validate_url(url))
    extra = serialize_query_string(params)
    if parts.query and extra:
        query = parts.query + "&" + extra
    else:
        query = parts.query or extra
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def strip_query(url: str) -> str:
    """URL without query or fragment, for logging."""

    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))
