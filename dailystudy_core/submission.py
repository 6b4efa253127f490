"""Submission rules (pure, no HTTP/DB/GitHub).

evaluate_submission() decides whether a submission is accepted and whether it
counts toward completion, and prepares everything the host needs to commit the
solution to the study repository and store the submission row.

Rejections (returned as ValidationError, never raised):
- rest_day: REST problems take no submissions
- missing_custom_title: FREE problems need the participant's own title
- season_not_active: the problem's season is not running
- not_registered / participant_dropped: submitter is not an eligible participant

Validity:
- FREE and practice problems are always valid
- everything else is valid only on the problem's local calendar day
- an invalid submission is still accepted and committed, it just never counts
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .dates import TzLike, is_within_submission_time, to_local
from .repository import ParticipantRecord, ProblemRecord, SeasonRecord
from .season import season_status_key
from .validation import InputSanitizer, ValidatedSubmission


@dataclass
class SubmissionOutcome:
    """Result of an accepted submission."""

    is_valid: bool
    is_update: bool
    problem_title: str
    file_name: str
    commit_path: str
    commit_message: str
    submitted_at: datetime
    # Stored handle differs from the submitted one; host should persist it.
    update_github_username: bool
    message: str


@dataclass
class ValidationError:
    """Represents a rejected submission (pure core)."""

    kind: str
    message: str | None = None
    status_code: int | None = None


def commit_timestamp(moment: datetime, tz: TzLike | None = None) -> str:
    """Local ``yyMMddHHmm`` stamp used in committed file names.

    Examples:
        - 2025-03-04 21:05 KST -> "2503042105"
    """
    return to_local(moment, tz).strftime("%y%m%d%H%M")


def build_file_name(problem_title: str, moment: datetime, tz: TzLike | None = None) -> str:
    return f"{InputSanitizer.sanitize_title(problem_title)}_{commit_timestamp(moment, tz)}.md"


def build_commit_path(season_number: int, github_username: str, file_name: str) -> str:
    return f"season{season_number}/{github_username}/{file_name}"


def build_commit_message(season_number: int, github_username: str, problem_title: str) -> str:
    return f"[Season {season_number}] {github_username} - {problem_title}"


def evaluate_submission(
    request: ValidatedSubmission,
    *,
    problem: ProblemRecord,
    season: SeasonRecord,
    participant: ParticipantRecord | None,
    now: datetime,
    has_existing: bool = False,
    tz: TzLike | None = None,
) -> SubmissionOutcome | ValidationError:
    """Apply submission rules for one request.

    Args:
        request: validated submit form payload
        problem: target problem (must belong to ``season``)
        season: the problem's season
        participant: participant matched by e-mail or handle, None if unknown
        now: submission instant
        has_existing: a submission for (participant, problem) already exists
        tz: study time zone

    Returns:
        SubmissionOutcome when accepted, ValidationError otherwise
    """
    if request.problemId != problem.id:
        return ValidationError(
            kind="problem_mismatch",
            message="Submission targets a different problem",
            status_code=400,
        )

    if problem.problem_type == "REST":
        return ValidationError(kind="rest_day", message="Rest days take no submissions", status_code=400)

    if problem.problem_type == "FREE" and not request.customTitle:
        return ValidationError(
            kind="missing_custom_title",
            message="FREE problems require a custom title",
            status_code=400,
        )

    if season_status_key(season.status, season.is_active) != "ACTIVE":
        return ValidationError(kind="season_not_active", message="Season is not in progress", status_code=400)

    if participant is None:
        return ValidationError(kind="not_registered", message="Not a registered participant", status_code=400)

    if participant.status == "DROPPED":
        return ValidationError(kind="participant_dropped", message="Participant has dropped out", status_code=400)

    is_valid = (
        problem.problem_type == "FREE"
        or problem.is_practice
        or is_within_submission_time(now, problem.assigned_date, tz)
    )

    problem_title = request.customTitle if problem.problem_type == "FREE" else problem.title
    file_name = build_file_name(problem_title, now, tz)
    action = "Update" if has_existing else "Submission"
    if is_valid:
        message = f"{action} completed."
    else:
        message = f"{action} completed, but it is past the deadline and will not count."

    return SubmissionOutcome(
        is_valid=is_valid,
        is_update=has_existing,
        problem_title=problem_title,
        file_name=file_name,
        commit_path=build_commit_path(season.season_number, request.githubUsername, file_name),
        commit_message=build_commit_message(season.season_number, request.githubUsername, problem_title),
        submitted_at=now,
        update_github_username=participant.github_username != request.githubUsername,
        message=message,
    )
