"""Operations on placement samples and alignments: weighting, filtering, splitting, merging."""

from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, List, Optional, Sequence as SequenceType, TypeVar

from epang.placement import PQuery, Sample
from epang.sequence import MSA, Sequence

logger = logging.getLogger(__name__)

T = TypeVar("T")


def compute_and_set_lwr(sample: Sample) -> None:
    """Set the likelihood weight ratio of every placement in every query of ``sample``."""
    for pquery in sample:
        if not len(pquery):
            continue
        best = max(p.likelihood for p in pquery)
        exp_lh = [math.exp(p.likelihood - best) for p in pquery]
        total = sum(exp_lh)
        for placement, weight in zip(pquery, exp_lh):
            placement.lwr = weight / total


def sort_by_lwr(pquery: PQuery) -> None:
    """Sort placements by descending likelihood weight ratio."""
    pquery.placements.sort(key=lambda p: p.lwr, reverse=True)


def sort_by_logl(pquery: PQuery) -> None:
    """Sort placements by descending log-likelihood."""
    pquery.placements.sort(key=lambda p: p.likelihood, reverse=True)


def until_top_percent(pquery: PQuery, x: float) -> int:
    """Sort by weight ratio and return how many placements make up the top fraction ``x``."""
    sort_by_lwr(pquery)
    return min(math.ceil(x * len(pquery)), len(pquery))


def until_accumulated_reached(
    pquery: PQuery,
    thresh: float,
    min_count: int = 1,
    max_count: Optional[int] = None,
) -> int:
    """Sort by weight ratio and return how many placements to keep.

    Placements are summed until their weight ratios reach ``thresh`` or
    ``max_count`` placements are taken; the result is then raised to at
    least ``min_count - 1``.
    """
    sort_by_lwr(pquery)
    limit = len(pquery) if max_count is None else min(max_count, len(pquery))

    total = 0.0
    kept = 0
    while kept < limit and total < thresh:
        total += pquery[kept].lwr
        kept += 1

    kept = max(kept, min_count - 1)
    return min(kept, len(pquery))


def _check_ratio(thresh: float) -> None:
    if thresh < 0.0 or thresh > 1.0:
        raise ValueError(
            "thresh is not a valid likelihood weight ratio (outside of [0,1])"
        )


def discard_bottom_x_percent(sample: Sample, x: float) -> None:
    """Remove the lowest-weighted fraction ``x`` of placements from every query."""
    if x < 0.0 or x > 1.0:
        raise ValueError("x is not a percentage (outside of [0,1])")
    for pquery in sample:
        keep = until_top_percent(pquery, 1.0 - x)
        del pquery.placements[keep:]


def discard_by_support_threshold(
    sample: Sample,
    thresh: float,
    min_count: int = 1,
    max_count: Optional[int] = None,
) -> None:
    """Keep placements whose weight ratio exceeds ``thresh``, within the count bounds.

    A ``max_count`` of None or 0 means no upper bound.
    """
    _check_ratio(thresh)
    if min_count < 1:
        raise ValueError("Filter min cannot be smaller than 1!")

    for pquery in sample:
        sort_by_lwr(pquery)
        num_kept = sum(1 for p in pquery if p.lwr > thresh)
        keep = num_kept
        if num_kept < min_count:
            keep += min_count - num_kept
        if max_count and num_kept > max_count:
            keep -= num_kept - max_count
        del pquery.placements[min(keep, len(pquery)):]


def discard_by_accumulated_threshold(
    sample: Sample,
    thresh: float,
    min_count: int = 1,
    max_count: Optional[int] = None,
) -> None:
    """Keep the best placements of each query until their weight ratios sum to ``thresh``."""
    _check_ratio(thresh)
    if min_count < 1:
        raise ValueError("Filter min cannot be smaller than 1!")
    if max_count is not None and min_count > max_count:
        raise ValueError("Filter min cannot be greater than filter max!")

    for pquery in sample:
        keep = until_accumulated_reached(pquery, thresh, min_count, max_count)
        del pquery.placements[keep:]


def filter_sample(
    sample: Sample,
    acc_threshold: bool,
    support_threshold: float,
    filter_min: int = 1,
    filter_max: Optional[int] = None,
) -> None:
    """Filter ``sample`` by accumulated or by minimum weight ratio."""
    if acc_threshold:
        logger.debug("Filtering output by accumulated threshold: %s", support_threshold)
        discard_by_accumulated_threshold(
            sample, support_threshold, filter_min, filter_max
        )
    else:
        logger.debug(
            "Filtering output placements below threshold: %s", support_threshold
        )
        discard_by_support_threshold(sample, support_threshold, filter_min, filter_max)


def find_collapse_equal_sequences(msa: MSA) -> None:
    """Collapse identical sequences into one entry that holds all their headers."""
    unique: Dict[str, Sequence] = {}
    for seq in msa:
        target = unique.get(seq.sequence)
        if target is None:
            unique[seq.sequence] = seq
        else:
            target.merge(seq)
    msa.sequences[:] = list(unique.values())


def collapse(sample: Sample) -> None:
    """Merge queries sharing a sequence id into the first of them."""
    first_by_id: Dict[int, PQuery] = {}
    kept: List[PQuery] = []
    for pquery in sample:
        target = first_by_id.get(pquery.sequence_id)
        if target is None:
            first_by_id[pquery.sequence_id] = pquery
            kept.append(pquery)
        else:
            target.extend(pquery.placements)
    sample.pqueries[:] = kept


def split_sample(sample: Sample, num_parts: int) -> List[Sample]:
    """Distribute queries into ``num_parts`` samples by sequence id modulo ``num_parts``.

    Every part is returned, even an empty one.
    """
    if num_parts < 1:
        raise ValueError("num_parts must be at least 1")
    parts = [Sample() for _ in range(num_parts)]
    for pquery in sample:
        parts[pquery.sequence_id % num_parts].append(
            PQuery(pquery.sequence_id, pquery.header, pquery.placements)
        )
    return parts


def split_even(items: SequenceType[T], num_parts: int) -> List[List[T]]:
    """Cut ``items`` into consecutive chunks of equal size (the last may be shorter)."""
    if num_parts < 1:
        raise ValueError("num_parts must be at least 1")
    chunk_size = math.ceil(len(items) / num_parts)
    return [
        list(items[start:start + chunk_size])
        for start in range(0, len(items), chunk_size)
    ] if chunk_size else []


def merge_samples(dest: Sample, src: Sample) -> None:
    """Add the placements of ``src`` to the matching queries of ``dest``, leaving ``src`` intact."""
    for pquery in src:
        target = next((d for d in dest if d == pquery), None)
        if target is None:
            target = PQuery(pquery.sequence_id, pquery.header)
            dest.append(target)
        target.extend(pquery.placements)


def merge_all(dest: Sample, parts: Iterable[Sample]) -> None:
    """Merge every sample of ``parts`` into ``dest``."""
    for part in parts:
        merge_samples(dest, part)