"""
Configuration layer for the completion logger and its demo service.

Values are read from environment variables so the same build can run with
colour on a developer terminal and plain text under a log collector.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from typing import Optional, TextIO


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.
    """

    service_name: str = os.getenv("SERVICE_NAME", "completion-logger-demo")
    environment: str = os.getenv("ENVIRONMENT", "production")

    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))

    # auto | always | never
    log_color: str = os.getenv("LOG_COLOR", "auto").lower()
    no_color: bool = bool(os.getenv("NO_COLOR"))

    # request.state attribute set by an earlier stage (see RequestReceivedMiddleware)
    start_time_attr: str = os.getenv("START_TIME_ATTR", "request_received_start_time")

    def color_enabled(self, stream: Optional[TextIO] = None) -> bool:
        """
        Resolve LOG_COLOR against the output stream.
        """
        if self.log_color == "always":
            return True
        if self.log_color == "never" or self.no_color:
            return False
        stream = stream if stream is not None else sys.stdout
        isatty = getattr(stream, "isatty", None)
        return bool(isatty and isatty())


settings = Settings()
