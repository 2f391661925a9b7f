"""
Per-request view the logger works against.

The dispatch pipeline owns the request; a RequestContext only holds what the
logger reads (method, path, response state) plus the response's completion
channel.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional, Union

from completion_logger.events import ResponseEvents

StartTime = Union[float, int, datetime]


@dataclass
class ResponseState:
    """
    Mutable response fields populated by downstream stages.
    """

    status: Optional[int] = None
    length: Optional[int] = None
    body: Any = None
    events: ResponseEvents = field(default_factory=ResponseEvents)

    @property
    def measured_length(self) -> Optional[int]:
        """
        Declared length, else the byte length of an in-memory body.

        None for streams and for bodies whose size cannot be known up front.
        """
        if self.length is not None:
            return self.length
        body = self.body
        if isinstance(body, str):
            return len(body.encode("utf-8"))
        if isinstance(body, memoryview):
            return body.nbytes
        if isinstance(body, (bytes, bytearray)):
            return len(body)
        return None


@dataclass
class RequestContext:
    method: str
    path: str
    response: ResponseState = field(default_factory=ResponseState)
    start_time: Optional[StartTime] = None
    onerror: Optional[Callable[[BaseException], None]] = None


def to_epoch_seconds(value: StartTime) -> float:
    """
    Normalise an externally supplied start time to epoch seconds.
    """
    if isinstance(value, datetime):
        return value.timestamp()
    return float(value)
