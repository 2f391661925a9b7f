"""Shared test fixtures."""

from typing import Any, List, Tuple

import pytest
from httpx import ASGITransport, AsyncClient

from completion_logger.main import create_app


class CapturingTransporter:
    """Transporter that keeps every line it receives."""

    def __init__(self) -> None:
        self.lines: List[str] = []
        self.args: List[Tuple[Any, ...]] = []

    def __call__(self, line: str, args: Tuple[Any, ...]) -> None:
        self.lines.append(line)
        self.args.append(args)


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000


@pytest.fixture
def transporter() -> CapturingTransporter:
    return CapturingTransporter()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def client(transporter: CapturingTransporter) -> AsyncClient:
    """Async HTTP client against the demo app, logging into `transporter`."""
    app = create_app(transporter, color=False)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
