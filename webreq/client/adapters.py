from __future__ import annotations

from contextlib import closing
from typing import BinaryIO, Callable, Mapping

from webreq.client.dispatcher import ResponseCallback


def to_string_callback(
    callback: Callable[[str], None], *, encoding: str = "utf-8"
) -> ResponseCallback:
    """Wrap a text callback as a (headers, body) callback.

    The body is read to the end (no size limit), decoded, handed to
    `callback`, and closed whether or not reading succeeded. Undecodable
    bytes are replaced rather than failing the call.
    """

    if not callable(callback):
        raise TypeError("callback must be callable")

    def _on_response(headers: Mapping[str, str], body: BinaryIO) -> None:
        with closing(body):
            text = body.read().decode(encoding, errors="replace")
        callback(text)

    return _on_response
