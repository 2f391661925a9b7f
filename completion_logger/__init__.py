"""
Request completion logger for FastAPI/Starlette.

One start line per request, and exactly one completion line whether the
response finished, the connection closed early, or a downstream stage raised.
"""

from completion_logger.middleware import ObservedResponse, RequestReceivedMiddleware, completion_logging_middleware
from completion_logger.models import CompletionRecord, OutcomeKind
from completion_logger.observer import CompletionLogger, create_logger
from completion_logger.sink import LoggerOptions, Sink

__all__ = [
    "CompletionLogger",
    "CompletionRecord",
    "LoggerOptions",
    "ObservedResponse",
    "OutcomeKind",
    "RequestReceivedMiddleware",
    "Sink",
    "completion_logging_middleware",
    "create_logger",
]
