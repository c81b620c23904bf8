"""Generic wait/polling utility.

Used for waiting on GitHub, where no provider-managed waiter exists. EC2
readiness goes through the SDK's own waiter instead.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable


async def wait_for_ready[T](
    poll_fn: Callable[[], Awaitable[T | None]],
    ready_check: Callable[[T], bool],
    *,
    timeout: float = 300.0,
    interval: float = 10.0,
    description: str = "resource",
) -> T:
    """Wait until poll_fn returns something that passes ready_check.

    Args:
        poll_fn: Async function that polls for the resource state. None means
            "not there yet".
        ready_check: Function that returns True when resource is ready.
        timeout: Maximum time to wait in seconds.
        interval: Time between polls in seconds.
        description: Description for error messages.

    Returns:
        The ready resource.

    Raises:
        TimeoutError: If timeout is exceeded.
    """
    loop = asyncio.get_running_loop()
    start = loop.time()

    while True:
        result = await poll_fn()

        if result is not None and ready_check(result):
            return result

        elapsed = loop.time() - start
        if elapsed + interval > timeout:
            raise TimeoutError(
                f"Timeout waiting for {description} after {timeout:.1f}s"
            )

        await asyncio.sleep(interval)
