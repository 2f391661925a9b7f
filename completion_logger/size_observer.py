"""
Byte counting for streamed response bodies with no declared length.
"""

from __future__ import annotations

from typing import Any, AsyncIterable, AsyncIterator, Callable, Iterable, Optional, Union

from starlette.concurrency import iterate_in_threadpool

Chunk = Union[bytes, bytearray, memoryview, str]
ErrorHandler = Callable[[BaseException], None]


def is_stream(body: Any) -> bool:
    """
    True when the body is produced incrementally rather than held in memory.
    """
    if body is None or isinstance(body, (bytes, bytearray, memoryview, str)):
        return False
    return hasattr(body, "__aiter__") or hasattr(body, "__iter__")


def _chunk_length(chunk: Chunk) -> int:
    if isinstance(chunk, str):
        return len(chunk.encode("utf-8"))
    if isinstance(chunk, memoryview):
        return chunk.nbytes
    return len(chunk)


class SizeObserver:
    """
    Pass-through wrapper over a body stream that tallies the bytes it yields.

    Chunks are forwarded unchanged. A read error from the source is handed to
    on_error (the response's error channel) and then re-raised, so the
    transport aborts the response instead of waiting on a dead stream.
    """

    def __init__(
        self,
        source: Union[AsyncIterable[Chunk], Iterable[Chunk]],
        on_error: Optional[ErrorHandler] = None,
    ) -> None:
        self._source = source
        self._on_error = on_error
        self._length = 0
        self._done = False

    @property
    def length(self) -> int:
        return self._length

    @property
    def done(self) -> bool:
        return self._done

    def __aiter__(self) -> AsyncIterator[Chunk]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[Chunk]:
        source = self._source
        if not hasattr(source, "__aiter__"):
            source = iterate_in_threadpool(source)  # type: ignore[arg-type]
        try:
            async for chunk in source:  # type: ignore[union-attr]
                self._length += _chunk_length(chunk)
                yield chunk
        except Exception as exc:
            if self._on_error is not None:
                self._on_error(exc)
            raise
        finally:
            self._done = True
