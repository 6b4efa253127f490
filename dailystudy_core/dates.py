"""Study calendar helpers (time-zone aware day boundaries).

Problems are assigned per local calendar day of the study zone. A submission is
on time when it lands on the same local day as its problem, and the refund
engine treats everything dated before the local midnight of "now" as past due.

Naive datetimes are read as UTC instants throughout.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "Asia/Seoul"

TzLike = str | tzinfo


def resolve_tz(tz: TzLike | None = None) -> tzinfo:
    if tz is None:
        return ZoneInfo(DEFAULT_TIMEZONE)
    if isinstance(tz, str):
        return ZoneInfo(tz)
    return tz


def as_aware(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def to_local(moment: datetime, tz: TzLike | None = None) -> datetime:
    return as_aware(moment).astimezone(resolve_tz(tz))


def start_of_day(moment: datetime | date, tz: TzLike | None = None) -> datetime:
    """Local midnight of the day containing ``moment`` (a plain date is taken as a local day)."""
    zone = resolve_tz(tz)
    if isinstance(moment, datetime):
        local_day = to_local(moment, zone).date()
    else:
        local_day = moment
    return datetime.combine(local_day, time.min, tzinfo=zone)


def end_of_day(moment: datetime | date, tz: TzLike | None = None) -> datetime:
    """Last representable instant of the local day containing ``moment``."""
    return start_of_day(moment, tz) + timedelta(days=1) - timedelta(microseconds=1)


def reference_day_start(now: datetime | None = None, tz: TzLike | None = None) -> datetime:
    """Cutoff for past-due problems: local midnight of ``now`` (defaults to the current time)."""
    if now is None:
        now = datetime.now(timezone.utc)
    return start_of_day(now, tz)


def is_within_submission_time(
    submitted_at: datetime,
    problem_date: datetime | date,
    tz: TzLike | None = None,
) -> bool:
    """True when ``submitted_at`` falls on the problem's local calendar day (inclusive)."""
    local_submit = to_local(submitted_at, tz)
    return start_of_day(problem_date, tz) <= local_submit <= end_of_day(problem_date, tz)


def day_number(start: datetime | date, current: datetime | date, tz: TzLike | None = None) -> int:
    """1-based day index of ``current`` within a season that starts on ``start``.

    Examples:
        - same local day -> 1
        - next local day -> 2
        - day before start -> 0
    """
    return (start_of_day(current, tz).date() - start_of_day(start, tz).date()).days + 1


def date_for_day(start: datetime | date, number: int, tz: TzLike | None = None) -> datetime:
    """Local midnight of the ``number``-th day (1-based) of a season starting on ``start``."""
    first = start_of_day(start, tz)
    return datetime.combine(first.date() + timedelta(days=number - 1), time.min, tzinfo=first.tzinfo)


def parse_local_date(value: str, tz: TzLike | None = None) -> datetime:
    """Parse ``YYYY-MM-DD`` or an ISO datetime as wall time in the study zone.

    An explicit offset in ``value`` wins over ``tz``.
    """
    parsed = datetime.fromisoformat(value.strip())
    if parsed.tzinfo is not None:
        return parsed
    return parsed.replace(tzinfo=resolve_tz(tz))


def format_local(moment: datetime, fmt: str = "%Y-%m-%d", tz: TzLike | None = None) -> str:
    return to_local(moment, tz).strftime(fmt)
