"""Assignment of worker ranks to pipeline stages and of sequences to ranks."""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

Schedule = List[List[int]]


def to_difficulty(perstage_avg: Sequence[float]) -> List[float]:
    """Scale stage timings so that the fastest stage has difficulty 1."""
    smallest = min(perstage_avg)
    return [x / smallest for x in perstage_avg]


def solve(
    stages: int, nodes: int, difficulty_per_stage: Sequence[float]
) -> List[int]:
    """Distribute ``nodes`` over ``stages`` in proportion to their difficulty.

    The first and last stage always start with one node; the remainder is
    balanced by adjusting the most populated stage until the total fits.
    """
    if len(difficulty_per_stage) != stages:
        raise ValueError("Number of difficulties must equal number of stages")
    if nodes < stages:
        raise ValueError("Must have more or equal number of nodes than stages")

    factor = nodes / sum(difficulty_per_stage)
    nodes_per_stage = [
        1 if i in (0, stages - 1) else math.ceil(d * factor)
        for i, d in enumerate(difficulty_per_stage)
    ]

    while (off_by := sum(nodes_per_stage) - nodes) != 0:
        largest = nodes_per_stage.index(max(nodes_per_stage))
        nodes_per_stage[largest] += 1 if off_by < 0 else -1

    return nodes_per_stage


def assign(
    local_rank: int, nodes_per_stage: Sequence[int]
) -> Tuple[Schedule, Optional[int]]:
    """Hand out consecutive ranks to stages.

    Returns the schedule and the stage of ``local_rank`` (None if it has none).
    """
    schedule: Schedule = []
    local_stage: Optional[int] = None
    rank = 0
    for stage, count in enumerate(nodes_per_stage):
        members = list(range(rank, rank + count))
        if local_rank in members:
            local_stage = stage
        schedule.append(members)
        rank += count
    return schedule, local_stage


def reassign(
    local_rank: int,
    nodes_per_stage: Sequence[int],
    schedule: Schedule,
    local_stage: Optional[int],
) -> Tuple[Schedule, Optional[int]]:
    """Move ranks from over-staffed to under-staffed stages, keeping the rest in place.

    Returns the new schedule and the (possibly changed) stage of ``local_rank``.
    """
    if len(nodes_per_stage) != len(schedule):
        raise ValueError("Schedule and node counts cover different numbers of stages")

    new_schedule = [list(members) for members in schedule]
    cut_ranks: List[int] = []
    for members, wanted in zip(new_schedule, nodes_per_stage):
        while len(members) > wanted:
            cut_ranks.append(members.pop())

    available = iter(cut_ranks)
    for stage, (members, wanted) in enumerate(zip(new_schedule, nodes_per_stage)):
        for _ in range(wanted - len(members)):
            try:
                rank = next(available)
            except StopIteration:
                raise ValueError("Not enough ranks to satisfy the new schedule") from None
            if rank == local_rank:
                local_stage = stage
            members.append(rank)

    return new_schedule, local_stage


def local_seq_package(
    num_seqs: int, local_rank: int = 0, num_ranks: int = 1
) -> Tuple[int, int]:
    """Return (first sequence index, number of sequences) this rank should read."""
    logger.info("Number of MPI ranks: %d", num_ranks)
    offset = 0
    part_size = num_seqs
    if num_ranks > 1:
        part_size = math.ceil(num_seqs / num_ranks)
        logger.info("Number of sequences per MPI rank: %d", part_size)
        offset = part_size * local_rank
    return offset, part_size