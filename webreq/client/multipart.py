"""multipart/form-data uploads.

Body layout (CRLF line endings throughout):

    <CRLF>
    --<boundary>
    content-disposition: form-data; name="<encoded name>"
    <blank>
    <encoded value>
    ...one section per scalar field...
    --<boundary>
    content-disposition: form-data; name="<field>"; filename="<filename>"
    Content-Type: <type>
    <blank>
    <file bytes>
    ...one section per file...
    --<boundary>--

Content-Type is `multipart/form-data; boundary=<token>`. Deviations from the
legacy wire format, both corrected to RFC 7578:
- semicolon before `boundary=` (legacy: `multipart/form-data, boundary=...`)
- CRLF after scalar fields too (legacy: bare LF)

Security notes:
- The boundary is random but not checked against the payload; content that
  happens to contain `--<boundary>` will corrupt the body.
- File bytes are streamed, never logged.
"""
from __future__ import annotations

import functools
import secrets
from concurrent.futures import Future
from typing import BinaryIO, Iterable, List, Optional, Sequence

from webreq.client.dispatcher import FailureCallback, RequestDispatcher, ResponseCallback
from webreq.core.errors import InvalidFileError, RequestBodyError, UnsupportedVerbError
from webreq.core.files import NamedFileStream
from webreq.core.params import ParameterBag, ParamsLike
from webreq.core.querystring import percent_encode, validate_url
from webreq.core.verbs import UPLOAD_VERBS, HttpVerb


# letters and digits without the look-alikes "l" and "I"
BOUNDARY_ALPHABET = "abcdefghijkmnopqrstuvwxyzABCDEFGHJKLMNOPQRSTUVWXYZ0123456789"
BOUNDARY_LENGTH = 12
CRLF = b"\r\n"


def random_boundary(length: int = BOUNDARY_LENGTH) -> str:
    """Fresh boundary token."""
    return "".join(secrets.choice(BOUNDARY_ALPHABET) for _ in range(length))


def multipart_content_type(boundary: str) -> str:
    return f"multipart/form-data; boundary={boundary}"


def _copy_stream(source: BinaryIO, target: BinaryIO, chunk_size: int) -> int:
    total = 0
    while True:
        chunk = source.read(chunk_size)
        if not chunk:
            return total
        if not isinstance(chunk, (bytes, bytearray, memoryview)):
            raise RequestBodyError("upload streams must yield bytes, not text")
        target.write(chunk)
        total += len(chunk)


def write_multipart_body(
    target: BinaryIO,
    boundary: str,
    params: ParameterBag,
    files: Sequence[NamedFileStream],
    *,
    chunk_size: int = 4096,
) -> None:
    """Write a complete multipart body to `target`.

    Scalar fields come first in bag order, then files in the given order.
    Each file is read once, from its current position, in `chunk_size`
    pieces. Streams are left open.
    """

    delimiter = b"--" + boundary.encode("ascii") + CRLF

    target.write(CRLF)
    for name, value in params:
        target.write(delimiter)
        target.write(
            f'content-disposition: form-data; name="{percent_encode(name)}"'.encode("utf-8") + CRLF
        )
        target.write(CRLF)
        target.write(percent_encode(value).encode("utf-8") + CRLF)

    for f in files:
        target.write(delimiter)
        head = (
            f'content-disposition: form-data; name="{f.name}"; filename="{f.filename}"\r\n'
            f"Content-Type: {f.content_type}\r\n"
            "\r\n"
        )
        target.write(head.encode("utf-8"))
        _copy_stream(f.stream, target, max(1, int(chunk_size)))
        target.write(CRLF)

    target.write(b"--" + boundary.encode("ascii") + b"--" + CRLF)


def _check_files(files: Optional[Iterable[NamedFileStream]]) -> List[NamedFileStream]:
    if files is None:
        return []
    checked = list(files)
    for f in checked:
        if not isinstance(f, NamedFileStream):
            raise InvalidFileError(f"expected NamedFileStream, got {type(f).__name__}")
    return checked


class MultipartUploader(RequestDispatcher):
    """RequestDispatcher that can also send multipart/form-data uploads."""

    def __init__(self, *args, chunk_size: int = 4096, **kwargs):
        super().__init__(*args, **kwargs)
        self.chunk_size = max(1, int(chunk_size))

    def upload(
        self,
        url: str,
        verb: HttpVerb | str,
        params: ParamsLike | None,
        files: Optional[Iterable[NamedFileStream]],
        on_success: ResponseCallback,
        on_failure: Optional[FailureCallback] = None,
    ) -> Future:
        """Upload scalar fields plus files with POST or PUT.

        Raises (synchronously, before any I/O):
          UnsupportedVerbError for any verb other than POST/PUT,
          MissingParametersError, InvalidUrlError, InvalidFileError,
          ParameterEncodingError

        Errors while reading the file streams are delivered as
        RequestBodyError through `on_failure` and the failure hooks.
        """

        verb = HttpVerb.coerce(verb)
        if verb not in UPLOAD_VERBS:
            raise UnsupportedVerbError("request method must be POST or PUT")
        bag = ParameterBag.from_value(params)
        url = validate_url(url)
        checked = _check_files(files)

        boundary = random_boundary()
        return self._start(
            verb,
            url,
            on_success,
            on_failure,
            content_type=multipart_content_type(boundary),
            write_body=functools.partial(_write_upload, boundary, bag, checked, self.chunk_size),
        )


def _write_upload(
    boundary: str,
    params: ParameterBag,
    files: List[NamedFileStream],
    chunk_size: int,
    target: BinaryIO,
) -> None:
    write_multipart_body(target, boundary, params, files, chunk_size=chunk_size)
