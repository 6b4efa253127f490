"""Record shapes read from storage and assembly of refund engine inputs.

Storage is an external collaborator: anything implementing ``SeasonRepository``
(ORM adapter, HTTP client, in-memory fixture) can feed the service layer.
The engine itself never sees these records, only ``Problem``/``ParticipantInput``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal, Protocol, Sequence

from .refund import ParticipantInput, ParticipantStatus, Problem

ProblemType = Literal["REGULAR", "FREE", "REST"]


@dataclass(frozen=True)
class SeasonRecord:
    id: str
    season_number: int
    name: str
    entry_fee: int
    status: str = "UPCOMING"
    is_active: bool = False
    start_date: datetime | None = None
    end_date: datetime | None = None


@dataclass(frozen=True)
class ProblemRecord:
    id: str
    season_id: str
    day_number: int
    title: str
    assigned_date: date | datetime
    problem_type: ProblemType = "REGULAR"
    is_practice: bool = False


@dataclass(frozen=True)
class ParticipantRecord:
    id: str
    season_id: str
    email: str | None = None
    github_username: str | None = None
    is_paid: bool = False
    status: ParticipantStatus = "ACTIVE"
    # Problem ids with a valid (on-time) submission.
    valid_problem_ids: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not isinstance(self.valid_problem_ids, frozenset):
            object.__setattr__(self, "valid_problem_ids", frozenset(self.valid_problem_ids))


class SeasonRepository(Protocol):
    def get_season(self, season_id: str) -> SeasonRecord | None:
        ...

    def list_problems(self, season_id: str) -> Sequence[ProblemRecord]:
        ...

    def list_participants(self, season_id: str) -> Sequence[ParticipantRecord]:
        ...

    def find_participant(
        self,
        season_id: str,
        *,
        email: str | None = None,
        github_username: str | None = None,
    ) -> ParticipantRecord | None:
        ...


def participant_identifier(record: ParticipantRecord) -> str:
    return record.github_username or record.email or f"participant-{record.id}"


def counted_problems(problems: Sequence[ProblemRecord]) -> list[ProblemRecord]:
    """Problems that count toward completion: no practice items, no rest days."""
    return [p for p in problems if not p.is_practice and p.problem_type != "REST"]


def build_refund_inputs(
    problems: Sequence[ProblemRecord],
    participants: Sequence[ParticipantRecord],
) -> tuple[list[ParticipantInput], list[Problem]]:
    """Map stored records to engine inputs.

    Only paid participants are passed on, and their submissions are restricted
    to counted problems so free-standing or practice submissions never inflate
    ``submitted_count``.
    """
    counted = counted_problems(problems)
    counted_ids = {p.id for p in counted}
    engine_problems = [Problem(id=p.id, assigned_date=p.assigned_date) for p in counted]
    engine_participants = [
        ParticipantInput(
            identifier=participant_identifier(record),
            is_paid=record.is_paid,
            status=record.status,
            submitted_problem_ids=frozenset(record.valid_problem_ids & counted_ids),
        )
        for record in participants
        if record.is_paid
    ]
    return engine_participants, engine_problems
