"""Verb-level entry points.

Security notes:
- Treat server responses as untrusted input.
- Avoid printing or logging raw file bytes.
"""
from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Iterable, Optional, Union

from webreq.client.adapters import to_string_callback
from webreq.client.dispatcher import FailureCallback, ResponseCallback
from webreq.client.multipart import MultipartUploader
from webreq.config import ClientConfig
from webreq.core.cookies import SharedCookieJar
from webreq.core.files import NamedFileStream
from webreq.core.hooks import FailureHooks
from webreq.core.params import ParameterBag, ParamsLike
from webreq.core.verbs import HttpVerb
from webreq.transport.base import Transport
from webreq.transport.urllib_transport import UrllibTransport

SuccessCallback = Union[Callable[[str], None], ResponseCallback]


class WebReqClient:
    """Asynchronous HTTP client with callback delivery.

    One instance owns one cookie jar, one set of failure hooks and one
    worker pool. Every method returns immediately with a Future that
    completes once the continuation has run; waiting on it is optional.

    By default `on_success` receives the body as text. With `stream=True`
    it receives `(headers, body)` and must close `body` itself.

    Failures go to `on_failure` (when given) and then to every
    `connect_failed` subscriber.

    Example:
        with WebReqClient() as client:
            client.get("https://example.org/", {"q": "x"}, on_success=print)
    """

    def __init__(
        self,
        *,
        transport: Optional[Transport] = None,
        cookies: Optional[SharedCookieJar] = None,
        config: Optional[ClientConfig] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.config = config or ClientConfig.from_env()
        self.cookies = cookies if cookies is not None else SharedCookieJar()
        self.connect_failed = FailureHooks()

        # Logging: safe defaults (no bodies), can be reconfigured by the host app.
        logging.getLogger("webreq").setLevel(self.config.log_level)

        if transport is None:
            transport = UrllibTransport(
                timeout_seconds=self.config.timeout_seconds,
                user_agent=self.config.user_agent,
                max_error_body_bytes=self.config.max_error_body_bytes,
            )
        self._dispatcher = MultipartUploader(
            transport,
            cookies=self.cookies,
            hooks=self.connect_failed,
            executor=executor,
            max_workers=self.config.max_workers,
            chunk_size=self.config.upload_chunk_bytes,
        )

    @property
    def transport(self) -> Transport:
        return self._dispatcher.transport

    def _continuation(self, on_success: SuccessCallback, stream: bool) -> ResponseCallback:
        return on_success if stream else to_string_callback(on_success)

    # get/head: parameters are optional and go into the query string

    def get(
        self,
        url: str,
        params: ParamsLike | None = None,
        *,
        on_success: SuccessCallback,
        on_failure: Optional[FailureCallback] = None,
        stream: bool = False,
    ) -> Future:
        """HTTP GET."""
        return self._dispatcher.dispatch(
            HttpVerb.GET,
            url,
            ParameterBag() if params is None else params,
            self._continuation(on_success, stream),
            on_failure,
        )

    def head(
        self,
        url: str,
        params: ParamsLike | None = None,
        *,
        on_success: SuccessCallback,
        on_failure: Optional[FailureCallback] = None,
        stream: bool = False,
    ) -> Future:
        """HTTP HEAD. The text form of the body is usually empty."""
        return self._dispatcher.dispatch(
            HttpVerb.HEAD,
            url,
            ParameterBag() if params is None else params,
            self._continuation(on_success, stream),
            on_failure,
        )

    # body verbs: parameters are required and sent form-url-encoded

    def post(
        self,
        url: str,
        params: ParamsLike | None,
        *,
        on_success: SuccessCallback,
        on_failure: Optional[FailureCallback] = None,
        stream: bool = False,
    ) -> Future:
        """HTTP POST with a form-url-encoded body."""
        return self._send(HttpVerb.POST, url, params, on_success, on_failure, stream)

    def put(
        self,
        url: str,
        params: ParamsLike | None,
        *,
        on_success: SuccessCallback,
        on_failure: Optional[FailureCallback] = None,
        stream: bool = False,
    ) -> Future:
        """HTTP PUT with a form-url-encoded body."""
        return self._send(HttpVerb.PUT, url, params, on_success, on_failure, stream)

    def patch(
        self,
        url: str,
        params: ParamsLike | None,
        *,
        on_success: SuccessCallback,
        on_failure: Optional[FailureCallback] = None,
        stream: bool = False,
    ) -> Future:
        """HTTP PATCH with a form-url-encoded body."""
        return self._send(HttpVerb.PATCH, url, params, on_success, on_failure, stream)

    def delete(
        self,
        url: str,
        params: ParamsLike | None,
        *,
        on_success: SuccessCallback,
        on_failure: Optional[FailureCallback] = None,
        stream: bool = False,
    ) -> Future:
        """HTTP DELETE with a form-url-encoded body."""
        return self._send(HttpVerb.DELETE, url, params, on_success, on_failure, stream)

    def _send(
        self,
        verb: HttpVerb,
        url: str,
        params: ParamsLike | None,
        on_success: SuccessCallback,
        on_failure: Optional[FailureCallback],
        stream: bool,
    ) -> Future:
        return self._dispatcher.dispatch(
            verb, url, params, self._continuation(on_success, stream), on_failure
        )

    def upload(
        self,
        url: str,
        params: ParamsLike | None,
        files: Iterable[NamedFileStream],
        *,
        verb: HttpVerb | str = HttpVerb.POST,
        on_success: SuccessCallback,
        on_failure: Optional[FailureCallback] = None,
        stream: bool = False,
    ) -> Future:
        """multipart/form-data upload of fields plus files (POST or PUT).

        The file streams stay open; close them after the returned future
        completes.
        """
        return self._dispatcher.upload(
            url,
            verb,
            params,
            files,
            self._continuation(on_success, stream),
            on_failure,
        )

    def close(self, timeout: Optional[float] = None) -> None:
        """Wait for in-flight calls and release the worker pool."""
        self._dispatcher.close(timeout=timeout)

    def __enter__(self) -> "WebReqClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
