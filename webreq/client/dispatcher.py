"""Request dispatch: turns the transport's two blocking phases into callbacks.

Per call, strictly in order:

1. build the target URL (GET/HEAD merge parameters into the query)
2. open the request body on a worker thread (body verbs only); this and
   every later stage run on that same worker
3. write the serialized body, flush, close
4. wait for the response on a worker thread
5. deliver (headers, body) to `on_success`, or the error to `on_failure`
   and the failure hooks

Precondition errors are raised from `dispatch` itself, before any I/O.
Transport errors never reach the caller's thread.
"""
from __future__ import annotations

import functools
import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from threading import Lock
from typing import BinaryIO, Callable, Mapping, Optional, Set

from webreq.core.cookies import SharedCookieJar
from webreq.core.errors import RequestBodyError, TransportError, WebReqError
from webreq.core.hooks import FailureHooks
from webreq.core.params import ParameterBag, ParamsLike
from webreq.core.querystring import (
    FORM_CONTENT_TYPE,
    merge_query,
    serialize_query_string,
    strip_query,
    validate_url,
)
from webreq.core.verbs import HttpVerb
from webreq.transport.base import Transport, TransportRequest, TransportResponse

log = logging.getLogger("webreq.client")

ResponseCallback = Callable[[Mapping[str, str], BinaryIO], None]
FailureCallback = Callable[[WebReqError], None]
BodyWriter = Callable[[BinaryIO], None]


@dataclass(slots=True)
class _Call:
    """State of one dispatched request."""

    verb: HttpVerb
    url: str
    content_type: Optional[str]
    write_body: Optional[BodyWriter]
    on_success: ResponseCallback
    on_failure: Optional[FailureCallback]
    done: Future = field(default_factory=Future)
    started: float = field(default_factory=time.monotonic)

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started) * 1000)


class RequestDispatcher:
    """Issues requests through a Transport without blocking the caller.

    Every call ends in exactly one of: `on_success` called once, or
    `on_failure` (if given) called once followed by the failure hooks.

    Callbacks run on worker threads and may run concurrently with each other
    and with the caller.

    Security notes:
    - Parameter values and response bodies are never logged.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        cookies: Optional[SharedCookieJar] = None,
        hooks: Optional[FailureHooks] = None,
        executor: Optional[ThreadPoolExecutor] = None,
        max_workers: int = 8,
    ):
        self.transport = transport
        self.cookies = cookies if cookies is not None else SharedCookieJar()
        self.hooks = hooks if hooks is not None else FailureHooks()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max(1, int(max_workers)), thread_name_prefix="webreq"
        )
        self._inflight: Set[Future] = set()
        self._lock = Lock()
        self._closed = False

    def dispatch(
        self,
        verb: HttpVerb | str,
        url: str,
        params: ParamsLike | None,
        on_success: ResponseCallback,
        on_failure: Optional[FailureCallback] = None,
        *,
        content_type: str = FORM_CONTENT_TYPE,
    ) -> Future:
        """Start a request and return a future that completes after delivery.

        GET/HEAD append `params` to the URL's query; other verbs send them as
        an `application/x-www-form-urlencoded` body.

        Raises (synchronously):
          UnsupportedVerbError, MissingParametersError, InvalidUrlError,
          ParameterEncodingError
        """

        verb = HttpVerb.coerce(verb)
        bag = ParameterBag.from_value(params)
        url = validate_url(url)

        if verb.has_body:
            body = serialize_query_string(bag).encode("utf-8")
            return self._start(
                verb,
                url,
                on_success,
                on_failure,
                content_type=content_type,
                write_body=functools.partial(_write_all, body),
            )
        return self._start(verb, merge_query(url, bag), on_success, on_failure)

    # -- stages -----------------------------------------------------------

    def _start(
        self,
        verb: HttpVerb,
        url: str,
        on_success: ResponseCallback,
        on_failure: Optional[FailureCallback],
        *,
        content_type: Optional[str] = None,
        write_body: Optional[BodyWriter] = None,
    ) -> Future:
        """Create the call state and kick off the first stage.

        `write_body` is given the open request stream; None means no body.
        """

        if not callable(on_success):
            raise TypeError("on_success must be callable")
        if on_failure is not None and not callable(on_failure):
            raise TypeError("on_failure must be callable or None")
        call = _Call(
            verb=verb,
            url=url,
            content_type=content_type,
            write_body=write_body,
            on_success=on_success,
            on_failure=on_failure,
        )

        with self._lock:
            if self._closed:
                raise RuntimeError("dispatcher is closed")
            self._inflight.add(call.done)
        call.done.add_done_callback(self._forget)

        try:
            request = self.transport.create_request(call.url, call.verb)
            request.cookie_jar = self.cookies
            if call.content_type is not None:
                request.content_type = call.content_type
        except TransportError as e:
            self._fail(call, e)
            return call.done
        except Exception:
            call.done.cancel()
            with self._lock:
                self._inflight.discard(call.done)
            raise

        try:
            self._executor.submit(self._run, call, request)
        except RuntimeError as e:
            # pool shut down underneath us
            self._crash(call, e)
        return call.done

    def _run(self, call: _Call, request: TransportRequest) -> None:
        """Worker body: open, write, await, deliver.

        The stages run back to back on one pool thread so none of them can
        land on the caller's thread.
        """

        try:
            if call.write_body is not None:
                self._write(call, request.open_body())
            response: TransportResponse = request.get_response()
        except TransportError as e:
            self._fail(call, e)
            return
        except Exception as e:
            self._crash(call, e)
            return
        self._succeed(call, response)

    def _write(self, call: _Call, body: BinaryIO) -> None:
        try:
            try:
                call.write_body(body)
                body.flush()
            finally:
                body.close()
        except TransportError:
            raise
        except Exception as e:
            raise RequestBodyError(
                f"writing {call.verb.value} body failed: {e}", url=call.url, verb=call.verb
            ) from e

    # -- delivery ---------------------------------------------------------

    def _succeed(self, call: _Call, response: TransportResponse) -> None:
        log.info(
            "http_request",
            extra={
                "method": call.verb.value,
                "url": strip_query(call.url),
                "status_code": response.status,
                "duration_ms": call.elapsed_ms(),
            },
        )
        try:
            call.on_success(response.headers, response.body)
        except Exception as e:
            log.exception("success_callback_error", extra={"method": call.verb.value})
            call.done.set_exception(e)
            return
        call.done.set_result(None)

    def _fail(self, call: _Call, error: WebReqError) -> None:
        if isinstance(error, TransportError) and error.url is None:
            error.url, error.verb = call.url, call.verb
        log.warning(
            "http_request_failed",
            extra={
                "method": call.verb.value,
                "url": strip_query(call.url),
                "status_code": getattr(error, "status", None),
                "duration_ms": call.elapsed_ms(),
                "error": type(error).__name__,
            },
        )
        callback_error: Optional[BaseException] = None
        if call.on_failure is not None:
            try:
                call.on_failure(error)
            except Exception as e:
                log.exception("failure_callback_error", extra={"method": call.verb.value})
                callback_error = e

        notified = self.hooks.notify(error)
        if call.on_failure is None and notified == 0:
            log.warning("unhandled_request_failure", extra={"error": str(error)})

        if callback_error is not None:
            call.done.set_exception(callback_error)
        else:
            call.done.set_result(None)

    def _crash(self, call: _Call, error: Exception) -> None:
        """Transport broke its contract (raised a non-TransportError).

        The error is wrapped so the call still ends in the failure
        continuation and the hooks.
        """
        log.error(
            "transport_contract_error",
            exc_info=error,
            extra={"method": call.verb.value, "url": strip_query(call.url)},
        )
        wrapped = TransportError(
            f"{call.verb.value} {strip_query(call.url)} failed: {error}",
            url=call.url,
            verb=call.verb,
        )
        wrapped.__cause__ = error
        self._fail(call, wrapped)

    def _forget(self, fut: Future) -> None:
        with self._lock:
            self._inflight.discard(fut)

    # -- lifecycle --------------------------------------------------------

    def close(self, timeout: Optional[float] = None) -> None:
        """Wait for in-flight calls, then stop the worker pool (if owned)."""

        with self._lock:
            self._closed = True
            pending = list(self._inflight)
        if pending:
            wait(pending, timeout=timeout)
        if self._owns_executor:
            self._executor.shutdown(wait=True)


def _write_all(payload: bytes, stream: BinaryIO) -> None:
    stream.write(payload)


