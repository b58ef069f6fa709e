from __future__ import annotations

from webreq.transport.base import Transport, TransportRequest, TransportResponse
from webreq.transport.urllib_transport import UrllibTransport

__all__ = ["Transport", "TransportRequest", "TransportResponse", "UrllibTransport"]
