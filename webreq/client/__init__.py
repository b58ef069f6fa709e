"""Callback-style HTTP client: dispatcher, multipart uploads, facade."""
from __future__ import annotations

from webreq.client.adapters import to_string_callback
from webreq.client.dispatcher import RequestDispatcher
from webreq.client.http import WebReqClient
from webreq.client.multipart import MultipartUploader, random_boundary, write_multipart_body

__all__ = [
    "MultipartUploader",
    "RequestDispatcher",
    "WebReqClient",
    "random_boundary",
    "to_string_callback",
    "write_multipart_body",
]
