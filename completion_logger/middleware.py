"""
HTTP middleware wiring the completion logger into FastAPI/Starlette.

- completion_logging_middleware: function middleware for app.middleware("http");
  a read error from a counted body stream closes the request
- ObservedResponse: emits "finish" once the last body chunk is sent and
  "close" when sending ends for any reason
- RequestReceivedMiddleware: stamps the accept time so later stages can
  measure from it
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from completion_logger.config import settings
from completion_logger.context import RequestContext
from completion_logger.events import CLOSE, FINISH, ResponseEvents
from completion_logger.observer import CompletionLogger
from completion_logger.sink import LoggerConfig

CallNext = Callable[[Request], Awaitable[Response]]
Dispatch = Callable[[Request, CallNext], Awaitable[Any]]


def original_url(scope: Scope) -> str:
    """
    Path plus query string, as the client sent it.
    """
    path = scope.get("path", "")
    query = scope.get("query_string", b"")
    if query:
        return f"{path}?{query.decode('latin-1')}"
    return path


def declared_length(response: Response) -> Optional[int]:
    value = response.headers.get("content-length")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def close_on_stream_error(events: ResponseEvents) -> Callable[[BaseException], None]:
    """
    Error hook for a counted body stream: a failed read ends the transfer early.
    """

    def onerror(exc: BaseException) -> None:
        events.emit(CLOSE)

    return onerror


class ObservedResponse:
    """
    Wraps a response and reports how its delivery ended.
    """

    def __init__(self, response: Response, events: ResponseEvents) -> None:
        self._response = response
        self._events = events

    @property
    def wrapped(self) -> Response:
        return self._response

    def __getattr__(self, name: str) -> Any:
        return getattr(self._response, name)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        async def send_wrapper(message: Message) -> None:
            await send(message)
            if message["type"] == "http.response.body" and not message.get("more_body", False):
                self._events.emit(FINISH)

        try:
            await self._response(scope, receive, send_wrapper)
        finally:
            # No-op when finish already won; otherwise the transfer was cut short.
            self._events.emit(CLOSE)


def completion_logging_middleware(
    options: LoggerConfig = None,
    *,
    color: Optional[bool] = None,
    logger: Optional[CompletionLogger] = None,
) -> Dispatch:
    """
    Build the request/response logging middleware.

    Usage: app.middleware("http")(completion_logging_middleware())
    """
    completion_logger = logger if logger is not None else CompletionLogger(options, color=color)

    async def dispatch(request: Request, call_next: CallNext) -> ObservedResponse:
        ctx = RequestContext(
            method=request.method,
            path=original_url(request.scope),
            start_time=getattr(request.state, settings.start_time_attr, None),
        )
        ctx.onerror = close_on_stream_error(ctx.response.events)
        downstream: Dict[str, Response] = {}

        async def next_stage() -> None:
            response = await call_next(request)
            downstream["response"] = response
            ctx.response.status = response.status_code
            ctx.response.length = declared_length(response)
            ctx.response.body = getattr(response, "body_iterator", None)
            if ctx.response.body is None:
                ctx.response.body = getattr(response, "body", None)

        await completion_logger(ctx, next_stage)

        response = downstream["response"]
        if hasattr(response, "body_iterator"):
            response.body_iterator = ctx.response.body
        return ObservedResponse(response, ctx.response.events)

    return dispatch


class RequestReceivedMiddleware:
    """
    Pure ASGI middleware recording when the request was received.

    Add it outermost; the completion logger measures from this timestamp
    instead of from its own entry.
    """

    def __init__(self, app: ASGIApp, attr: Optional[str] = None) -> None:
        self.app = app
        self.attr = attr or settings.start_time_attr

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            state = scope.setdefault("state", {})
            state.setdefault(self.attr, datetime.now(timezone.utc))
        await self.app(scope, receive, send)
