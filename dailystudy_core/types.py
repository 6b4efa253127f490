"""Type definitions for JSON payloads served to the admin and participant pages."""
from __future__ import annotations

from typing import List, Optional, TypedDict


class SeasonPayload(TypedDict):
    """Season header shown above every refund view."""
    id: str
    seasonNumber: int
    name: str
    entryFee: int


class RefundResultPayload(TypedDict):
    """One row of the admin refund table."""
    githubUsername: str  # participant identifier (handle, e-mail or fallback id)
    totalProblems: int
    submittedCount: int
    missedCount: int
    rank: Optional[int]  # None for dropped participants
    rankLabel: str
    refundPercentage: float  # 0-100, may be fractional for ties
    refundAmount: int
    isDropped: bool


class RankCountsPayload(TypedDict):
    first: int
    second: int
    third: int
    other: int  # ranks beyond the podium


class RankSummaryPayload(TypedDict):
    rank: int
    count: int
    totalPercentage: float
    totalBonus: int  # refund above the entry fee
    totalRefund: int


class RefundSummaryPayload(TypedDict):
    paidCount: int
    activeCount: int
    droppedCount: int
    rankCounts: RankCountsPayload
    rankSummaries: List[RankSummaryPayload]
    activeRefundTotal: int
    bonusTotal: int
    # Floored-away part of the dropped pool that nobody receives.
    bonusRemainder: int


class MyRefundPayload(TypedDict):
    status: str  # 'NOT_REGISTERED' | 'UNPAID' | 'ACTIVE' | 'DROPPED'
    refundAmount: int
    missedCount: int
    submittedCount: int
    totalProblems: int


class SeasonRefundPayload(TypedDict):
    """Admin refund report (full participant table)."""
    season: SeasonPayload
    totalProblems: int
    totalPool: int
    droppedPool: int
    results: List[RefundResultPayload]


class MyRefundResponsePayload(TypedDict):
    """Participant-facing refund lookup (aggregates only + own row)."""
    season: SeasonPayload
    totalProblems: int
    totalPool: int
    droppedPool: int
    summary: RefundSummaryPayload
    my: MyRefundPayload


class ProblemStatusPayload(TypedDict):
    problemId: str
    dayNumber: int
    submitted: bool


class GridRowPayload(TypedDict):
    id: str
    githubUsername: Optional[str]
    submittedCount: int
    totalProblems: int
    problemStatus: List[ProblemStatusPayload]
