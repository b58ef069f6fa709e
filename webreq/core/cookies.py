from __future__ import annotations

from http.cookiejar import Cookie, CookieJar
from threading import Lock
from typing import Any, Iterator, List, Optional


class SharedCookieJar:
    """Cookie store shared by every request issued through one client.

    Cookies set by any response are sent on all later requests that match
    their domain/path, for as long as the jar lives.

    Implements the two methods `urllib.request.HTTPCookieProcessor` calls
    (`add_cookie_header`, `extract_cookies`), so it can be plugged straight
    into an opener.

    Security notes:
    - Cookie values are never logged or included in repr().
    """

    def __init__(self, jar: Optional[CookieJar] = None):
        self._jar = jar if jar is not None else CookieJar()
        self._lock = Lock()

    def add_cookie_header(self, request: Any) -> None:
        with self._lock:
            self._jar.add_cookie_header(request)

    def extract_cookies(self, response: Any, request: Any) -> None:
        with self._lock:
            self._jar.extract_cookies(response, request)

    def set_cookie(self, cookie: Cookie) -> None:
        with self._lock:
            self._jar.set_cookie(cookie)

    def get(self, name: str, default: Optional[str] = None, *, domain: Optional[str] = None) -> Optional[str]:
        """Value of the first cookie called `name` (optionally for one domain)."""
        for c in self:
            if c.name == name and (domain is None or c.domain == domain):
                return c.value
        return default

    def clear(self) -> None:
        with self._lock:
            self._jar.clear()

    def __iter__(self) -> Iterator[Cookie]:
        with self._lock:
            snapshot: List[Cookie] = list(self._jar)
        return iter(snapshot)

    def __len__(self) -> int:
        with self._lock:
            return len(self._jar)

    def __repr__(self) -> str:
        return f"SharedCookieJar(count={len(self)})"
