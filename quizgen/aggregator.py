"""
Step 5 — Batch Aggregator

Joins batch outcomes into one QuestionSet. Output order follows
batch.start_index, never completion order. Failed batches are reported on the
set; only a request where nothing survived is a hard failure.
"""

import logging
from typing import Sequence

from quizgen.errors import GenerationError
from quizgen.schemas import BatchOutcome, QuestionSet

log = logging.getLogger("generation.pipeline")


def aggregate(outcomes: Sequence[BatchOutcome]) -> QuestionSet:
    if not outcomes:
        raise GenerationError("No batches to aggregate")

    ordered = sorted(outcomes, key=lambda o: o.batch.start_index)
    succeeded = [o for o in ordered if not o.failed]
    failed = [o for o in ordered if o.failed]

    questions = [q for outcome in succeeded for q in outcome.questions]
    requested = sum(o.batch.size for o in ordered)

    if not questions:
        raise GenerationError(
            f"All {len(ordered)} batch(es) failed",
            failed_batches=len(failed) or len(ordered),
            total_batches=len(ordered),
            reasons=[o.error or "no questions" for o in ordered],
        )

    if failed:
        log.warning(
            f"[AGGREGATE] {len(failed)}/{len(ordered)} batch(es) failed "
            f"({', '.join(o.batch.label for o in failed)}) — "
            f"returning {len(questions)}/{requested} question(s)"
        )
    else:
        log.info(f"[AGGREGATE] {len(questions)}/{requested} question(s) from {len(ordered)} batch(es)")

    return QuestionSet(
        questions=questions,
        requested=requested,
        total_batches=len(ordered),
        failed_batches=[o.batch for o in failed],
    )
