"""Refund report service: repository + access policy + engine + aggregation.

HTTP handlers stay thin: they build a ``Viewer`` from the session, call one of
the service methods and serialize the returned report with the matching
``*_payload`` helper. ``RefundServiceError`` subclasses carry the status code
the handler should answer with.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from .auth import AuthorizationPolicy, Viewer
from .config import StudySettings
from .dates import reference_day_start
from .refund import RefundCalculation, calculate_refund
from .report import (
    GridRow,
    MyRefund,
    RefundSummary,
    build_submission_grid,
    grid_row_payload,
    lookup_my_refund,
    my_refund_payload,
    refund_result_payload,
    refund_summary_payload,
    season_payload,
    summarize_refund,
)
from .repository import SeasonRecord, SeasonRepository, build_refund_inputs
from .types import GridRowPayload, MyRefundResponsePayload, SeasonRefundPayload

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class RefundServiceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotAuthenticated(RefundServiceError):
    status_code = 401


class NotAuthorized(RefundServiceError):
    status_code = 403


class SeasonNotFound(RefundServiceError):
    status_code = 404


@dataclass(frozen=True)
class SeasonRefundReport:
    season: SeasonRecord
    total_problems: int
    calculation: RefundCalculation


@dataclass(frozen=True)
class MyRefundReport:
    season: SeasonRecord
    total_problems: int
    calculation: RefundCalculation
    summary: RefundSummary
    my: MyRefund


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RefundService:
    def __init__(
        self,
        repository: SeasonRepository,
        policy: AuthorizationPolicy,
        settings: StudySettings | None = None,
        clock: Clock | None = None,
    ):
        self._repository = repository
        self._policy = policy
        self._settings = settings or StudySettings()
        self._clock = clock or _utc_now

    def _require_viewer(self, viewer: Viewer | None) -> Viewer:
        if viewer is None or not self._policy.is_authenticated(viewer):
            logger.warning("Refund report requested without an authenticated viewer")
            raise NotAuthenticated("Unauthorized")
        return viewer

    def _require_admin(self, viewer: Viewer | None) -> Viewer:
        viewer = self._require_viewer(viewer)
        if not self._policy.is_admin(viewer):
            who = viewer.normalized_email or viewer.github_username
            logger.warning(f"Non-admin viewer {who} denied the refund table")
            raise NotAuthorized("Forbidden")
        return viewer

    def _require_season(self, season_id: str) -> SeasonRecord:
        season = self._repository.get_season(season_id)
        if season is None:
            logger.warning(f"Refund report requested for unknown season {season_id}")
            raise SeasonNotFound("Season not found")
        return season

    def _calculate(self, season: SeasonRecord) -> tuple[int, RefundCalculation]:
        problems = self._repository.list_problems(season.id)
        participants = self._repository.list_participants(season.id)
        engine_participants, engine_problems = build_refund_inputs(problems, participants)
        calculation = calculate_refund(
            engine_participants,
            engine_problems,
            season.entry_fee,
            reference_day_start=reference_day_start(self._clock(), self._settings.timezone),
            distribution=self._settings.refund_distribution,
            drop_threshold=self._settings.drop_threshold,
        )
        logger.info(
            f"Refund report for season {season.id}: paid={len(calculation.results)} "
            f"dropped_pool={calculation.dropped_pool}"
        )
        return len(engine_problems), calculation

    def season_refund(self, season_id: str, viewer: Viewer | None) -> SeasonRefundReport:
        """Full refund table for a season (admins only)."""
        self._require_admin(viewer)
        season = self._require_season(season_id)
        total_problems, calculation = self._calculate(season)
        return SeasonRefundReport(season=season, total_problems=total_problems, calculation=calculation)

    def my_refund(self, season_id: str, viewer: Viewer | None) -> MyRefundReport:
        """Season aggregates plus the viewer's own row (matched by e-mail or handle)."""
        viewer = self._require_viewer(viewer)
        season = self._require_season(season_id)
        total_problems, calculation = self._calculate(season)
        participant = self._repository.find_participant(
            season.id,
            email=viewer.normalized_email,
            github_username=viewer.github_username,
        )
        return MyRefundReport(
            season=season,
            total_problems=total_problems,
            calculation=calculation,
            summary=summarize_refund(calculation, season.entry_fee),
            my=lookup_my_refund(calculation, participant, total_problems),
        )

    def submission_grid(self, season_id: str) -> tuple[GridRow, ...]:
        season = self._require_season(season_id)
        return build_submission_grid(
            self._repository.list_problems(season.id),
            self._repository.list_participants(season.id),
        )


def season_refund_payload(report: SeasonRefundReport) -> SeasonRefundPayload:
    return {
        "season": season_payload(report.season),
        "totalProblems": report.total_problems,
        "totalPool": report.calculation.total_pool,
        "droppedPool": report.calculation.dropped_pool,
        "results": [refund_result_payload(r) for r in report.calculation.results],
    }


def my_refund_response_payload(report: MyRefundReport) -> MyRefundResponsePayload:
    return {
        "season": season_payload(report.season),
        "totalProblems": report.total_problems,
        "totalPool": report.calculation.total_pool,
        "droppedPool": report.calculation.dropped_pool,
        "summary": refund_summary_payload(report.summary),
        "my": my_refund_payload(report.my),
    }


def submission_grid_payload(rows: tuple[GridRow, ...]) -> list[GridRowPayload]:
    return [grid_row_payload(row) for row in rows]


__all__ = [
    "RefundService",
    "RefundServiceError",
    "NotAuthenticated",
    "NotAuthorized",
    "SeasonNotFound",
    "SeasonRefundReport",
    "MyRefundReport",
    "season_refund_payload",
    "my_refund_response_payload",
    "submission_grid_payload",
]
