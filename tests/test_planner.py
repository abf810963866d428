import math

import pytest

from quizgen.planner import plan


@pytest.mark.parametrize("total,max_size", [(1, 20), (5, 20), (20, 20), (21, 20), (45, 20), (7, 3), (10, 1), (3, 10)])
def test_batches_cover_every_index_exactly_once(total, max_size):
    batches = plan(total, max_size)

    covered = [i for b in batches for i in range(b.start_index, b.end_index)]
    assert covered == list(range(total))
    assert len(batches) == math.ceil(total / max_size)
    assert all(1 <= b.size <= max_size for b in batches)


def test_single_batch_for_small_request():
    batches = plan(5)
    assert len(batches) == 1
    assert batches[0].start_index == 0
    assert batches[0].size == 5


def test_last_batch_takes_the_remainder():
    assert [(b.start_index, b.size) for b in plan(45, 20)] == [(0, 20), (20, 20), (40, 5)]


def test_plan_is_deterministic():
    assert plan(57, 20) == plan(57, 20)


@pytest.mark.parametrize("total,max_size", [(0, 20), (-1, 20), (5, 0)])
def test_rejects_non_positive_arguments(total, max_size):
    with pytest.raises(ValueError):
        plan(total, max_size)
