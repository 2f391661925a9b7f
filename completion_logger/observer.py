"""
The logger stage: one start line on entry, one completion line per request.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Optional

from completion_logger.arbiter import CompletionArbiter
from completion_logger.config import settings
from completion_logger.context import RequestContext, to_epoch_seconds
from completion_logger.formatter import format_duration, format_record, format_size, format_start
from completion_logger.models import CompletionRecord, OutcomeKind
from completion_logger.sink import LoggerConfig, Sink, resolve_sink
from completion_logger.size_observer import SizeObserver, is_stream

NextStage = Callable[[], Awaitable[None]]


class CompletionLogger:
    """
    Pipeline stage that logs request start and completion.

    `options` is a transporter callable, an object or mapping with a
    `transporter`, or None for stdout. `color` defaults to LOG_COLOR.
    """

    def __init__(
        self,
        options: LoggerConfig = None,
        *,
        color: Optional[bool] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.sink: Sink = resolve_sink(options)
        self.color = settings.color_enabled() if color is None else color
        self._clock = clock

    async def __call__(self, ctx: RequestContext, call_next: NextStage) -> CompletionArbiter:
        start = to_epoch_seconds(ctx.start_time) if ctx.start_time is not None else self._clock()
        self.sink.write(format_start(ctx.method, ctx.path, color=self.color), (ctx.method, ctx.path))

        # Listeners go on before downstream runs so no terminal signal is missed.
        arbiter = CompletionArbiter(ctx, self.log, start, clock=self._clock)

        try:
            await call_next()
        except asyncio.CancelledError:
            # A cancelled downstream never finishes; treat it as the connection closing.
            arbiter.resolve(OutcomeKind.CLOSE)
            raise
        except Exception as exc:
            arbiter.fail(exc)
            raise

        # Count a streamed body only when no length was declared up front.
        response = ctx.response
        if response.measured_length is None and is_stream(response.body):
            counter = SizeObserver(response.body, on_error=ctx.onerror)
            arbiter.attach_counter(counter)
            response.body = counter

        return arbiter

    def log(self, record: CompletionRecord) -> None:
        args = (
            record.method,
            record.path,
            record.status,
            format_duration(record.duration_ms),
            format_size(record.status, record.size),
        )
        self.sink.write(format_record(record, color=self.color), args)


def create_logger(
    options: LoggerConfig = None,
    *,
    color: Optional[bool] = None,
    clock: Callable[[], float] = time.time,
) -> CompletionLogger:
    return CompletionLogger(options, color=color, clock=clock)
