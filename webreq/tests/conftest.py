from __future__ import annotations

import io
import socket
import threading
import time
from typing import BinaryIO, Callable, Dict, List, Optional, Tuple

import pytest
from fastapi import FastAPI, Response
from pydantic import BaseModel
from starlette.requests import Request

from webreq.config import ClientConfig
from webreq.core.verbs import HttpVerb
from webreq.transport.base import TransportResponse


class _KeptBody(io.BytesIO):
    """Request body that remembers what was written after close()."""

    def __init__(self) -> None:
        super().__init__()
        self.payload: Optional[bytes] = None

    def close(self) -> None:
        if not self.closed:
            self.payload = self.getvalue()
        super().close()


class FakeRequest:
    def __init__(self, transport: "FakeTransport", url: str, verb: HttpVerb):
        self.transport = transport
        self.url = url
        self.verb = verb
        self.content_type: Optional[str] = None
        self.cookie_jar = None
        self.body: Optional[_KeptBody] = None

    def open_body(self):
        self.transport.calls.append(("open_body", self.verb.value, self.url))
        if self.transport.open_error is not None:
            raise self.transport.open_error
        self.body = _KeptBody()
        return self.body

    def get_response(self) -> TransportResponse:
        self.transport.calls.append(("get_response", self.verb.value, self.url))
        if self.transport.response_error is not None:
            raise self.transport.response_error
        return TransportResponse(
            status=200,
            headers={"Content-Type": "text/plain; charset=utf-8"},
            body=self.transport.body_cls(self.transport.response_body),
            reason="OK",
        )


class FakeTransport:
    """Deterministic transport that records every interaction."""

    def __init__(
        self,
        *,
        response_body: bytes = b"ok",
        open_error: Optional[Exception] = None,
        response_error: Optional[Exception] = None,
        create_error: Optional[Exception] = None,
        body_cls: Callable[[bytes], BinaryIO] = io.BytesIO,
    ):
        self.response_body = response_body
        self.open_error = open_error
        self.response_error = response_error
        self.create_error = create_error
        self.body_cls = body_cls
        self.calls: List[Tuple[str, str, str]] = []
        self.requests: List[FakeRequest] = []

    def create_request(self, url: str, verb: HttpVerb) -> FakeRequest:
        self.calls.append(("create_request", verb.value, url))
        if self.create_error is not None:
            raise self.create_error
        r = FakeRequest(self, url, verb)
        self.requests.append(r)
        return r


@pytest.fixture
def fake_transport_cls():
    return FakeTransport


@pytest.fixture
def client_config() -> ClientConfig:
    return ClientConfig(timeout_seconds=5.0, max_workers=4, log_level="DEBUG")


# -- echo server ----------------------------------------------------------


class EchoOut(BaseModel):
    method: str
    query: List[Tuple[str, str]]
    content_type: Optional[str] = None
    body: str = ""
    cookies: Dict[str, str] = {}
    user_agent: Optional[str] = None


def create_echo_app() -> FastAPI:
    """Tiny app that reflects requests back as JSON."""

    app = FastAPI(title="webreq echo")

    # registered first so HEAD never falls through to the JSON route
    @app.head("/echo")
    def echo_head() -> Response:
        return Response(status_code=200, headers={"X-Echo-Method": "HEAD"})

    @app.api_route("/echo", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
    async def echo(request: Request) -> EchoOut:
        body = await request.body()
        return EchoOut(
            method=request.method,
            query=list(request.query_params.multi_items()),
            content_type=request.headers.get("content-type"),
            body=body.decode("utf-8", errors="replace"),
            cookies=dict(request.cookies),
            user_agent=request.headers.get("user-agent"),
        )

    @app.get("/login")
    def login(response: Response) -> Dict[str, bool]:
        response.set_cookie("session", "s3cr3t")
        return {"ok": True}

    @app.get("/status/{code}")
    def status(code: int) -> Response:
        return Response(status_code=code, content=f"status {code}")

    return app


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return int(s.getsockname()[1])


@pytest.fixture(scope="session")
def echo_server():
    """Serve the echo app with uvicorn on a background thread."""

    import uvicorn

    port = _free_port()
    config = uvicorn.Config(
        create_echo_app(), host="127.0.0.1", port=port, log_level="warning", lifespan="off"
    )
    server = uvicorn.Server(config)
    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()

    deadline = time.monotonic() + 15
    while not server.started:
        if time.monotonic() > deadline or not thread.is_alive():
            raise RuntimeError("echo server did not start")
        time.sleep(0.02)

    yield f"http://127.0.0.1:{port}"

    server.should_exit = True
    thread.join(timeout=10)


@pytest.fixture
def refused_url() -> str:
    """URL on a local port nothing listens on."""
    return f"http://127.0.0.1:{_free_port()}/nothing"
