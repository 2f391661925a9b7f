"""
Completion arbiter: decides which terminal signal ends a request.

Three signals race for each request: the response finished, the connection
closed before it finished, or a downstream stage raised. The first one to
claim the arbiter produces the CompletionRecord; the rest are no-ops.

The claim and the removal of both response listeners happen under one lock,
so a finish and a close delivered from different threads cannot both win.
"""

from __future__ import annotations

import threading
import time
from enum import Enum
from typing import Callable, Optional

from completion_logger.context import RequestContext
from completion_logger.events import CLOSE, FINISH
from completion_logger.models import CompletionRecord, OutcomeKind
from completion_logger.size_observer import SizeObserver

DEFAULT_STATUS = 404
DEFAULT_ERROR_STATUS = 500

RecordHandler = Callable[[CompletionRecord], None]


class ArbiterState(str, Enum):
    PENDING = "pending"
    COMPLETE = "complete"


def _valid_status(value: object) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value if value > 0 else None


def status_from_error(exc: BaseException) -> int:
    """
    Status carried by an exception, or 500.

    Looks at `status_code` (Starlette/FastAPI HTTPException), `status`,
    `http_status` and boom-style `output.status_code`, in that order.
    """
    for attr in ("status_code", "status", "http_status"):
        status = _valid_status(getattr(exc, attr, None))
        if status is not None:
            return status
    output = getattr(exc, "output", None)
    status = _valid_status(getattr(output, "status_code", None))
    if status is not None:
        return status
    return DEFAULT_ERROR_STATUS


class CompletionArbiter:
    """
    PENDING -> COMPLETE state machine for one request.

    Registers its finish/close listeners on construction; callers must create
    it before awaiting the downstream pipeline.
    """

    def __init__(
        self,
        ctx: RequestContext,
        on_record: RecordHandler,
        start: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ctx = ctx
        self._on_record = on_record
        self._start = start
        self._clock = clock
        self._lock = threading.Lock()
        self._state = ArbiterState.PENDING
        self._counter: Optional[SizeObserver] = None

        events = ctx.response.events
        events.once(FINISH, self._on_finish)
        events.once(CLOSE, self._on_close)

    @property
    def state(self) -> ArbiterState:
        return self._state

    @property
    def counter(self) -> Optional[SizeObserver]:
        return self._counter

    def attach_counter(self, counter: SizeObserver) -> None:
        self._counter = counter

    def _on_finish(self) -> None:
        self.resolve(OutcomeKind.FINISH)

    def _on_close(self) -> None:
        self.resolve(OutcomeKind.CLOSE)

    def _claim(self) -> bool:
        with self._lock:
            if self._state is ArbiterState.COMPLETE:
                return False
            self._state = ArbiterState.COMPLETE
            events = self._ctx.response.events
            events.remove_listener(FINISH, self._on_finish)
            events.remove_listener(CLOSE, self._on_close)
            return True

    def _elapsed_ms(self) -> int:
        return max(0, int(round((self._clock() - self._start) * 1000)))

    def resolve(self, outcome: OutcomeKind) -> bool:
        """
        Finish or close signal. Returns False if another signal already won.
        """
        if not self._claim():
            return False
        response = self._ctx.response
        size = self._counter.length if self._counter is not None else response.measured_length
        self._emit(response.status or DEFAULT_STATUS, size, outcome)
        return True

    def fail(self, exc: BaseException) -> bool:
        """
        Downstream error. Size is unknown since the body may never have been produced.
        """
        if not self._claim():
            return False
        self._emit(status_from_error(exc), None, OutcomeKind.ERROR)
        return True

    def _emit(self, status: int, size: Optional[int], outcome: OutcomeKind) -> None:
        record = CompletionRecord(
            method=self._ctx.method,
            path=self._ctx.path,
            status=status,
            duration_ms=self._elapsed_ms(),
            size=size,
            outcome=outcome,
        )
        self._on_record(record)
