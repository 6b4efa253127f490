"""Caller-side refund aggregation (rank summaries, bonus remainder, own-row lookup).

The engine returns per-participant rows only. Everything a report shows on top
of that (per-rank totals, bonus totals, the floored-away remainder of the
dropped pool, "my" status) is derived here so every consumer computes it the
same way.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Sequence

from .refund import RefundCalculation, RefundResult, get_rank_label
from .repository import ParticipantRecord, ProblemRecord, SeasonRecord, participant_identifier
from .types import (
    GridRowPayload,
    MyRefundPayload,
    RankSummaryPayload,
    RefundResultPayload,
    RefundSummaryPayload,
    SeasonPayload,
)

MyStatus = Literal["NOT_REGISTERED", "UNPAID", "ACTIVE", "DROPPED"]


@dataclass(frozen=True)
class RankSummary:
    rank: int
    count: int
    total_percentage: float
    total_bonus: int
    total_refund: int


@dataclass(frozen=True)
class RankCounts:
    first: int
    second: int
    third: int
    other: int


@dataclass(frozen=True)
class RefundSummary:
    paid_count: int
    active_count: int
    dropped_count: int
    rank_counts: RankCounts
    rank_summaries: tuple[RankSummary, ...]
    active_refund_total: int
    bonus_total: int
    bonus_remainder: int


@dataclass(frozen=True)
class MyRefund:
    status: MyStatus
    refund_amount: int
    missed_count: int
    submitted_count: int
    total_problems: int


@dataclass(frozen=True)
class ProblemStatus:
    problem_id: str
    day_number: int
    submitted: bool


@dataclass(frozen=True)
class GridRow:
    participant_id: str
    github_username: str | None
    submitted_count: int
    total_problems: int
    problem_status: tuple[ProblemStatus, ...]


def bonus_amount(result: RefundResult, entry_fee: int) -> int:
    return max(0, result.refund_amount - entry_fee)


def build_rank_summaries(results: Sequence[RefundResult], entry_fee: int) -> tuple[RankSummary, ...]:
    grouped: dict[int, list[RefundResult]] = {}
    for result in results:
        if result.is_dropped or result.rank is None:
            continue
        grouped.setdefault(result.rank, []).append(result)
    return tuple(
        RankSummary(
            rank=rank,
            count=len(group),
            total_percentage=sum(r.refund_percentage for r in group),
            total_bonus=sum(bonus_amount(r, entry_fee) for r in group),
            total_refund=sum(r.refund_amount for r in group),
        )
        for rank, group in sorted(grouped.items())
    )


def summarize_refund(calculation: RefundCalculation, entry_fee: int) -> RefundSummary:
    active = calculation.active_results
    dropped = calculation.dropped_results
    bonus_total = sum(bonus_amount(r, entry_fee) for r in active)
    return RefundSummary(
        paid_count=len(calculation.results),
        active_count=len(active),
        dropped_count=len(dropped),
        rank_counts=RankCounts(
            first=sum(1 for r in active if r.rank == 1),
            second=sum(1 for r in active if r.rank == 2),
            third=sum(1 for r in active if r.rank == 3),
            other=sum(1 for r in active if (r.rank or 0) > 3),
        ),
        rank_summaries=build_rank_summaries(calculation.results, entry_fee),
        active_refund_total=sum(r.refund_amount for r in active),
        bonus_total=bonus_total,
        bonus_remainder=max(0, calculation.dropped_pool - bonus_total),
    )


def lookup_my_refund(
    calculation: RefundCalculation,
    participant: ParticipantRecord | None,
    total_problems: int,
) -> MyRefund:
    """Resolve the viewer's own refund row by participant identifier."""
    not_found = MyRefund(
        status="NOT_REGISTERED",
        refund_amount=0,
        missed_count=0,
        submitted_count=0,
        total_problems=total_problems,
    )
    if participant is None:
        return not_found
    if not participant.is_paid:
        return MyRefund(
            status="UNPAID",
            refund_amount=0,
            missed_count=0,
            submitted_count=0,
            total_problems=total_problems,
        )
    identifier = participant_identifier(participant)
    for result in calculation.results:
        if result.identifier == identifier:
            return MyRefund(
                status="DROPPED" if result.is_dropped else "ACTIVE",
                refund_amount=result.refund_amount,
                missed_count=result.missed_count,
                submitted_count=result.submitted_count,
                total_problems=result.total_problems,
            )
    return not_found


def build_submission_grid(
    problems: Sequence[ProblemRecord],
    participants: Sequence[ParticipantRecord],
) -> tuple[GridRow, ...]:
    """Dashboard grid: one row per non-dropped participant, one cell per problem."""
    ordered_problems = sorted(problems, key=lambda p: p.day_number)
    # Handle order, participants without a handle last.
    ordered_participants = sorted(
        (p for p in participants if p.status != "DROPPED"),
        key=lambda p: (p.github_username is None, p.github_username or "", p.id),
    )
    rows: list[GridRow] = []
    for participant in ordered_participants:
        submitted = participant.valid_problem_ids
        rows.append(
            GridRow(
                participant_id=participant.id,
                github_username=participant.github_username,
                submitted_count=len(submitted),
                total_problems=len(ordered_problems),
                problem_status=tuple(
                    ProblemStatus(
                        problem_id=problem.id,
                        day_number=problem.day_number,
                        submitted=problem.id in submitted,
                    )
                    for problem in ordered_problems
                ),
            )
        )
    return tuple(rows)


def season_payload(season: SeasonRecord) -> SeasonPayload:
    return {
        "id": season.id,
        "seasonNumber": season.season_number,
        "name": season.name,
        "entryFee": season.entry_fee,
    }


def refund_result_payload(result: RefundResult) -> RefundResultPayload:
    return {
        "githubUsername": result.identifier,
        "totalProblems": result.total_problems,
        "submittedCount": result.submitted_count,
        "missedCount": result.missed_count,
        "rank": result.rank,
        "rankLabel": get_rank_label(result.rank),
        "refundPercentage": result.refund_percentage,
        "refundAmount": result.refund_amount,
        "isDropped": result.is_dropped,
    }


def rank_summary_payload(summary: RankSummary) -> RankSummaryPayload:
    return {
        "rank": summary.rank,
        "count": summary.count,
        "totalPercentage": summary.total_percentage,
        "totalBonus": summary.total_bonus,
        "totalRefund": summary.total_refund,
    }


def refund_summary_payload(summary: RefundSummary) -> RefundSummaryPayload:
    return {
        "paidCount": summary.paid_count,
        "activeCount": summary.active_count,
        "droppedCount": summary.dropped_count,
        "rankCounts": {
            "first": summary.rank_counts.first,
            "second": summary.rank_counts.second,
            "third": summary.rank_counts.third,
            "other": summary.rank_counts.other,
        },
        "rankSummaries": [rank_summary_payload(s) for s in summary.rank_summaries],
        "activeRefundTotal": summary.active_refund_total,
        "bonusTotal": summary.bonus_total,
        "bonusRemainder": summary.bonus_remainder,
    }


def my_refund_payload(my: MyRefund) -> MyRefundPayload:
    return {
        "status": my.status,
        "refundAmount": my.refund_amount,
        "missedCount": my.missed_count,
        "submittedCount": my.submitted_count,
        "totalProblems": my.total_problems,
    }


def grid_row_payload(row: GridRow) -> GridRowPayload:
    return {
        "id": row.participant_id,
        "githubUsername": row.github_username,
        "submittedCount": row.submitted_count,
        "totalProblems": row.total_problems,
        "problemStatus": [
            {"problemId": s.problem_id, "dayNumber": s.day_number, "submitted": s.submitted}
            for s in row.problem_status
        ],
    }
