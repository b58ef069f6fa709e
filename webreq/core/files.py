from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from typing import BinaryIO, Optional

from webreq.core.errors import InvalidFileError

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class NamedFileStream:
    """One file to upload.

    Fields:
      name: form field name
      filename: file name reported to the server
      content_type: MIME type; guessed from `filename` when omitted
      stream: readable binary stream positioned at the data to send

    The stream stays owned by the caller: the uploader reads it once and
    never closes or rewinds it.
    """

    name: str
    filename: str
    content_type: Optional[str]
    stream: BinaryIO

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidFileError("file field name must be a non-empty string")
        if not isinstance(self.filename, str) or not self.filename.strip():
            raise InvalidFileError("filename must be a non-empty string")
        if not callable(getattr(self.stream, "read", None)):
            raise InvalidFileError(f"stream for {self.name!r} is not readable")

        if not self.content_type:
            guessed = mimetypes.guess_type(self.filename)[0]
            object.__setattr__(self, "content_type", guessed or DEFAULT_CONTENT_TYPE)
