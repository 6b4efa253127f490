"""Season refund engine (drop classification + competition ranking + pool split).

Single source of truth for refund amounts across admin report / participant lookup:
- Missed count: past-due problems (before the reference day start) without a valid submission.
- Dropped: status DROPPED, or ACTIVE with missed >= drop threshold. COMPLETED is never dropped.
- Ranking: fewer misses first, competition ranks (1, 1, 3).
- Pool: dropped fees are split by the rank table, ties share the window evenly,
  amounts are floored and the remainder stays undistributed.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from fractions import Fraction
from typing import Iterable, Literal, Mapping, Sequence

from .dates import as_aware
from .dates import reference_day_start as _current_reference_day_start

logger = logging.getLogger(__name__)

ParticipantStatus = Literal["ACTIVE", "DROPPED", "COMPLETED"]

REFUND_DISTRIBUTION: Mapping[int, float] = {1: 70, 2: 20, 3: 10}
DROP_THRESHOLD = 3


@dataclass(frozen=True)
class Problem:
    id: str
    assigned_date: date | datetime


@dataclass(frozen=True)
class ParticipantInput:
    identifier: str
    is_paid: bool
    status: ParticipantStatus
    submitted_problem_ids: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        # Accept any iterable of ids from callers; duplicates collapse.
        if not isinstance(self.submitted_problem_ids, frozenset):
            object.__setattr__(self, "submitted_problem_ids", frozenset(self.submitted_problem_ids))


@dataclass(frozen=True)
class RefundResult:
    identifier: str
    total_problems: int
    submitted_count: int
    missed_count: int
    rank: int | None
    refund_percentage: float
    refund_amount: int
    is_dropped: bool


@dataclass(frozen=True)
class RefundCalculation:
    total_pool: int
    dropped_pool: int
    results: tuple[RefundResult, ...]

    @property
    def active_results(self) -> tuple[RefundResult, ...]:
        return tuple(r for r in self.results if not r.is_dropped)

    @property
    def dropped_results(self) -> tuple[RefundResult, ...]:
        return tuple(r for r in self.results if r.is_dropped)


@dataclass
class _ScoredItem:
    participant: ParticipantInput
    submitted_count: int
    missed_count: int
    is_dropped: bool
    rank: int | None = None
    percentage: Fraction = Fraction(0)
    amount: int = 0


def _is_past_due(assigned: date | datetime, day_start: datetime) -> bool:
    # datetime is a date subclass, check it first.
    if isinstance(assigned, datetime):
        return as_aware(assigned) < as_aware(day_start)
    return assigned < day_start.date()


def _is_dropped(status: str, missed_count: int, drop_threshold: int) -> bool:
    return status == "DROPPED" or (status == "ACTIVE" and missed_count >= drop_threshold)


def _assign_competition_ranks(items: list[_ScoredItem]) -> None:
    current_rank = 1
    for idx, item in enumerate(items):
        if idx > 0 and item.missed_count > items[idx - 1].missed_count:
            current_rank = idx + 1
        item.rank = current_rank


def _group_by_rank(items: Iterable[_ScoredItem]) -> dict[int, list[_ScoredItem]]:
    grouped: dict[int, list[_ScoredItem]] = {}
    for item in items:
        if item.rank is not None:
            grouped.setdefault(item.rank, []).append(item)
    return grouped


def _window_percentage(rank: int, group_size: int, distribution: Mapping[int, float]) -> Fraction:
    top_rank = max(distribution, default=0)
    if rank > top_rank:
        return Fraction(0)
    total = Fraction(0)
    for r in range(rank, min(rank + group_size - 1, top_rank) + 1):
        # Via str: a float share such as 33.3 means the decimal, not its binary approximation.
        total += Fraction(str(distribution.get(r, 0)))
    return total


def _to_result(item: _ScoredItem, total_problems: int) -> RefundResult:
    return RefundResult(
        identifier=item.participant.identifier,
        total_problems=total_problems,
        submitted_count=item.submitted_count,
        missed_count=item.missed_count,
        rank=item.rank,
        refund_percentage=float(item.percentage),
        refund_amount=item.amount,
        is_dropped=item.is_dropped,
    )


def calculate_refund(
    participants: Sequence[ParticipantInput],
    problems: Sequence[Problem],
    entry_fee: int,
    *,
    reference_day_start: datetime | None = None,
    distribution: Mapping[int, float] = REFUND_DISTRIBUTION,
    drop_threshold: int = DROP_THRESHOLD,
) -> RefundCalculation:
    """
    Compute refund amounts for one season snapshot.

    Args:
      participants: participant inputs; unpaid entries are ignored.
      problems: problems that count toward completion (no practice/rest days).
      entry_fee: per-participant fee, in integer currency units.
      reference_day_start: start of "today"; problems dated strictly before it
        can be missed. Defaults to the current local midnight in the study zone,
        evaluated once.
      distribution: rank -> percentage of the dropped pool (default 70/20/10).
      drop_threshold: missed count at which an ACTIVE participant is dropped.
    """
    if entry_fee < 0:
        raise ValueError(f"entry_fee must be non-negative, got {entry_fee}")
    day_start = reference_day_start
    if day_start is None:
        day_start = _current_reference_day_start()

    paid = [p for p in participants if p.is_paid]
    total_pool = len(paid) * entry_fee
    total_problems = len(problems)
    past_problem_ids = [p.id for p in problems if _is_past_due(p.assigned_date, day_start)]

    scored: list[_ScoredItem] = []
    for participant in paid:
        submitted = participant.submitted_problem_ids
        missed_count = sum(1 for pid in past_problem_ids if pid not in submitted)
        scored.append(
            _ScoredItem(
                participant=participant,
                submitted_count=len(submitted),
                missed_count=missed_count,
                is_dropped=_is_dropped(participant.status, missed_count, drop_threshold),
            )
        )

    dropped = [item for item in scored if item.is_dropped]
    # sorted() is stable: tied participants keep their input order.
    active = sorted((item for item in scored if not item.is_dropped), key=lambda item: item.missed_count)
    dropped_pool = len(dropped) * entry_fee

    _assign_competition_ranks(active)
    rank_groups = _group_by_rank(active)
    for rank in sorted(rank_groups):
        group = rank_groups[rank]
        per_person = _window_percentage(rank, len(group), distribution) / len(group)
        amount = math.floor(dropped_pool * per_person / 100)
        for item in group:
            item.percentage = per_person
            item.amount = amount

    for item in active:
        item.amount += entry_fee

    logger.debug(
        f"Refund computed: paid={len(paid)} active={len(active)} dropped={len(dropped)} "
        f"past_problems={len(past_problem_ids)}/{total_problems} cutoff={day_start.isoformat()}"
    )

    return RefundCalculation(
        total_pool=total_pool,
        dropped_pool=dropped_pool,
        results=tuple(_to_result(item, total_problems) for item in [*active, *dropped]),
    )


def get_rank_label(rank: int | None) -> str:
    if rank is None:
        return "Dropped"
    if rank == 1:
        return "Rank 1 (0 missed)"
    if rank == 2:
        return "Rank 2 (1 missed)"
    if rank == 3:
        return "Rank 3 (2 missed)"
    return f"Rank {rank}"
