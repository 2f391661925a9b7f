"""
Output sink for formatted lines.

A logger is configured with either a transporter callable, an object (or
mapping) exposing a `transporter`, or nothing. The choice is resolved once when
the sink is built; without a transporter lines are printed to stdout.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Tuple, Union

Transporter = Callable[[str, Tuple[Any, ...]], None]


@dataclass(frozen=True)
class LoggerOptions:
    """
    Object form of the logger configuration.
    """

    transporter: Optional[Transporter] = None


LoggerConfig = Union[Transporter, LoggerOptions, Mapping[str, Any], None]


class Sink:
    """
    Writes each line exactly once. Errors raised by the transporter propagate.
    """

    def __init__(self, transporter: Optional[Transporter] = None) -> None:
        self._transporter = transporter

    @property
    def transporter(self) -> Optional[Transporter]:
        return self._transporter

    def write(self, line: str, args: Tuple[Any, ...]) -> None:
        if self._transporter is not None:
            self._transporter(line, args)
        else:
            print(line, flush=True)


def resolve_sink(options: LoggerConfig = None) -> Sink:
    """
    Resolve the configuration variant into a Sink.
    """
    if options is None:
        return Sink()
    if isinstance(options, Mapping):
        return Sink(options.get("transporter"))
    if hasattr(options, "transporter"):
        return Sink(options.transporter)
    if callable(options):
        return Sink(options)
    raise TypeError(
        "logger options must be a transporter callable or expose a 'transporter' field, "
        f"got {type(options).__name__}"
    )
