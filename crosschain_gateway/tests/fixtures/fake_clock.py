import asyncio

import pytest


class FakeClock:
    """Monotonic clock that only moves when something sleeps on it."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay
        await asyncio.sleep(0)


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()
