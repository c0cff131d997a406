import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

T = TypeVar("T")


async def run_with_concurrency(
    tasks: Sequence[Callable[[], Awaitable[T]]],
    limit: int,
) -> list[T]:
    """Run task factories with at most ``limit`` in flight.

    Workers share a single cursor and each claims the next unstarted index.
    The result of ``tasks[i]`` is stored at position ``i`` whatever the
    completion order. If a task raises, the remaining workers are cancelled
    before the error propagates, so no further tasks are started.
    """
    if limit < 1:
        raise ValueError(f"Concurrency limit must be at least 1, got {limit}")

    results: list[T | None] = [None] * len(tasks)
    next_index = 0

    async def worker() -> None:
        nonlocal next_index
        while next_index < len(tasks):
            # Claim and increment with no await in between.
            index = next_index
            next_index += 1
            results[index] = await tasks[index]()

    worker_count = min(limit, len(tasks))
    workers = [asyncio.ensure_future(worker()) for _ in range(worker_count)]
    try:
        await asyncio.gather(*workers)
    except BaseException:
        for pending in workers:
            pending.cancel()
        await asyncio.gather(*workers, return_exceptions=True)
        raise
    return results  # type: ignore[return-value]
