"""
Step 2 — Prompt Batch Planner

Splits a requested question count into consecutive batches so that no single
model call has to produce more than `max_batch_size` questions.
"""

import logging
from typing import List

from quizgen.config import MAX_BATCH_SIZE
from quizgen.schemas import Batch

log = logging.getLogger("generation.pipeline")


def plan(total_questions: int, max_batch_size: int = MAX_BATCH_SIZE) -> List[Batch]:
    """
    Partition [0, total_questions) into ceil(total / max_batch_size) batches.

    Each batch takes min(max_batch_size, remaining) questions. Identical
    inputs always give identical batches.
    """
    if total_questions < 1:
        raise ValueError(f"total_questions must be positive, got {total_questions}")
    if max_batch_size < 1:
        raise ValueError(f"max_batch_size must be positive, got {max_batch_size}")

    batches = [
        Batch(start_index=start, size=min(max_batch_size, total_questions - start))
        for start in range(0, total_questions, max_batch_size)
    ]
    log.info(f"[PLAN] {total_questions} question(s) → {len(batches)} batch(es) of ≤{max_batch_size}")
    return batches
