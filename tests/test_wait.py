from __future__ import annotations

import pytest

from ec2_runner.infra.wait import wait_for_ready

pytestmark = [pytest.mark.unit]


@pytest.mark.asyncio
async def test_returns_first_ready_result():
    states = iter([None, "offline", "online", "never-reached"])

    async def poll() -> str | None:
        return next(states)

    assert await wait_for_ready(poll, lambda s: s == "online", timeout=5, interval=0.01) == "online"


@pytest.mark.asyncio
async def test_times_out():
    calls = 0

    async def poll() -> str | None:
        nonlocal calls
        calls += 1
        return "offline"

    with pytest.raises(TimeoutError, match="runner with label x"):
        await wait_for_ready(
            poll, lambda s: s == "online", timeout=0.05, interval=0.01, description="runner with label x",
        )
    assert calls >= 1
