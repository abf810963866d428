"""
Bounded task group for batch generation.

Every batch becomes its own task. Launches are staggered (task i waits
i × stagger_delay before it starts) and a semaphore caps the number of calls
in flight. The join waits for every task; a task that raises is turned into a
failed BatchOutcome so one bad batch never takes its siblings down.
Cancelling the caller cancels every task, including ones still waiting to
launch. A ConfigurationError from any worker is re-raised after the join.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Sequence

from quizgen.errors import ConfigurationError
from quizgen.schemas import Batch, BatchOutcome

log = logging.getLogger("generation.pipeline")

BatchWorker = Callable[[Batch], Awaitable[BatchOutcome]]


async def run_batches(
    batches: Sequence[Batch],
    worker: BatchWorker,
    max_concurrency: int,
    stagger_delay: float = 0.0,
) -> List[BatchOutcome]:
    """Run `worker` over all batches and return outcomes in batch order."""
    semaphore = asyncio.Semaphore(max_concurrency)

    async def _run(position: int, batch: Batch) -> BatchOutcome:
        if position and stagger_delay:
            await asyncio.sleep(position * stagger_delay)
        async with semaphore:
            return await worker(batch)

    results = await asyncio.gather(
        *(_run(i, batch) for i, batch in enumerate(batches)),
        return_exceptions=True,
    )

    outcomes = []
    for batch, result in zip(batches, results):
        if isinstance(result, (asyncio.CancelledError, ConfigurationError)):
            raise result
        if isinstance(result, BaseException):
            log.error(f"[BATCH {batch.label}] worker crashed: {type(result).__name__}: {result}")
            outcomes.append(BatchOutcome(batch=batch, failed=True, error=type(result).__name__))
        else:
            outcomes.append(result)
    return outcomes
