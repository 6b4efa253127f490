from __future__ import annotations

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from dailystudy_core import (
    ParticipantInput,
    Problem,
    StudySettings,
    calculate_refund,
    get_rank_label,
)

KST = ZoneInfo("Asia/Seoul")
DAY_START = datetime(2025, 3, 11, tzinfo=KST)


def _past_problems(count: int) -> list[Problem]:
    # Dated the days before DAY_START, oldest first.
    return [
        Problem(id=f"p{i}", assigned_date=DAY_START - timedelta(days=count - i))
        for i in range(count)
    ]


def _participant(name: str, submitted, status: str = "ACTIVE", is_paid: bool = True) -> ParticipantInput:
    return ParticipantInput(
        identifier=name,
        is_paid=is_paid,
        status=status,
        submitted_problem_ids=frozenset(submitted),
    )


def _all_but(problems: list[Problem], missed: int) -> set[str]:
    return {p.id for p in problems[missed:]}


def _rows_by_id(calculation):
    return {row.identifier: row for row in calculation.results}


def test_podium_and_drop_with_three_participants():
    problems = _past_problems(10)
    participants = [
        _participant("p1", _all_but(problems, 0)),
        _participant("p2", _all_but(problems, 1)),
        _participant("p3", _all_but(problems, 3)),
    ]
    out = calculate_refund(participants, problems, 20000, reference_day_start=DAY_START)
    by_id = _rows_by_id(out)
    assert out.total_pool == 60000
    assert out.dropped_pool == 20000
    assert [row.identifier for row in out.results] == ["p1", "p2", "p3"]
    assert by_id["p1"].rank == 1
    assert by_id["p1"].refund_percentage == 70
    assert by_id["p1"].refund_amount == 34000
    assert by_id["p2"].rank == 2
    assert by_id["p2"].refund_amount == 24000
    assert by_id["p3"].is_dropped is True
    assert by_id["p3"].rank is None
    assert by_id["p3"].refund_percentage == 0
    assert by_id["p3"].refund_amount == 0
    assert by_id["p3"].missed_count == 3
    assert by_id["p3"].submitted_count == 7
    assert by_id["p1"].total_problems == 10


def test_two_way_tie_at_first_absorbs_second_place_share():
    problems = _past_problems(5)
    participants = [
        _participant("a", _all_but(problems, 0)),
        _participant("b", _all_but(problems, 0)),
        _participant("c", set()),
    ]
    out = calculate_refund(participants, problems, 10000, reference_day_start=DAY_START)
    by_id = _rows_by_id(out)
    assert out.dropped_pool == 10000
    assert by_id["a"].rank == by_id["b"].rank == 1
    assert by_id["a"].refund_percentage == 45
    assert by_id["b"].refund_percentage == 45
    assert by_id["a"].refund_amount == 14500
    assert by_id["b"].refund_amount == 14500
    assert by_id["c"].is_dropped is True


def test_season_just_started_everyone_ties_at_first():
    problems = [
        Problem(id=f"p{i}", assigned_date=DAY_START + timedelta(days=i)) for i in range(5)
    ]
    participants = [
        _participant("a", set()),
        _participant("b", {"p0"}),
        _participant("c", set()),
        _participant("quitter", set(), status="DROPPED"),
    ]
    out = calculate_refund(participants, problems, 10000, reference_day_start=DAY_START)
    by_id = _rows_by_id(out)
    assert out.dropped_pool == 10000
    for name in ("a", "b", "c"):
        assert by_id[name].missed_count == 0
        assert by_id[name].rank == 1
        assert by_id[name].refund_percentage == pytest.approx(100 / 3)
        assert by_id[name].refund_amount == 13333
    assert by_id["quitter"].is_dropped is True


def test_no_paid_participants_gives_empty_calculation():
    out = calculate_refund([], _past_problems(3), 20000, reference_day_start=DAY_START)
    assert out.total_pool == 0
    assert out.dropped_pool == 0
    assert out.results == ()


def test_unpaid_participants_are_ignored():
    problems = _past_problems(3)
    participants = [
        _participant("paid", _all_but(problems, 0)),
        _participant("unpaid", set(), is_paid=False),
    ]
    out = calculate_refund(participants, problems, 20000, reference_day_start=DAY_START)
    assert out.total_pool == 20000
    assert [row.identifier for row in out.results] == ["paid"]


def test_completed_status_is_never_dropped_by_missed_count():
    problems = _past_problems(6)
    participants = [
        _participant("done", _all_but(problems, 5), status="COMPLETED"),
        _participant("gone", set(), status="DROPPED"),
    ]
    out = calculate_refund(participants, problems, 10000, reference_day_start=DAY_START)
    by_id = _rows_by_id(out)
    assert by_id["done"].missed_count == 5
    assert by_id["done"].is_dropped is False
    assert by_id["done"].rank == 1
    # Alone at rank 1: window covers rank 1 only.
    assert by_id["done"].refund_amount == 10000 + 7000


def test_dropped_status_wins_even_without_misses():
    problems = _past_problems(4)
    participants = [_participant("quit", _all_but(problems, 0), status="DROPPED")]
    out = calculate_refund(participants, problems, 10000, reference_day_start=DAY_START)
    row = out.results[0]
    assert row.missed_count == 0
    assert row.is_dropped is True
    assert row.refund_amount == 0


def test_tie_straddling_third_place_splits_only_third_share():
    problems = _past_problems(10)
    participants = [
        _participant("a", _all_but(problems, 0)),
        _participant("b", _all_but(problems, 1)),
        _participant("c", _all_but(problems, 2)),
        _participant("d", _all_but(problems, 2)),
        _participant("e", _all_but(problems, 3)),
    ]
    out = calculate_refund(participants, problems, 10000, reference_day_start=DAY_START)
    by_id = _rows_by_id(out)
    assert [by_id[n].rank for n in "abcd"] == [1, 2, 3, 3]
    assert by_id["c"].refund_percentage == 5
    assert by_id["d"].refund_percentage == 5
    assert by_id["a"].refund_amount == 17000
    assert by_id["b"].refund_amount == 12000
    assert by_id["c"].refund_amount == 10500
    assert by_id["d"].refund_amount == 10500


def test_competition_ranks_skip_after_tie_and_rank_four_gets_fee_only():
    problems = _past_problems(10)
    participants = [
        _participant("a", _all_but(problems, 0)),
        _participant("b", _all_but(problems, 1)),
        _participant("c", _all_but(problems, 1)),
        _participant("d", _all_but(problems, 2)),
        _participant("x", set(), status="DROPPED"),
    ]
    out = calculate_refund(participants, problems, 10000, reference_day_start=DAY_START)
    by_id = _rows_by_id(out)
    assert [by_id[n].rank for n in "abcd"] == [1, 2, 2, 4]
    assert by_id["b"].refund_percentage == 15
    assert by_id["c"].refund_percentage == 15
    assert by_id["d"].refund_percentage == 0
    assert by_id["d"].refund_amount == 10000


def test_four_way_tie_at_first_shares_whole_table():
    problems = _past_problems(2)
    participants = [_participant(n, _all_but(problems, 0)) for n in "abcd"]
    participants.append(_participant("x", set(), status="DROPPED"))
    out = calculate_refund(participants, problems, 10000, reference_day_start=DAY_START)
    for row in out.active_results:
        assert row.rank == 1
        assert row.refund_percentage == 25
        assert row.refund_amount == 12500


def test_amounts_are_floored_and_remainder_is_kept():
    problems = _past_problems(1)
    participants = [_participant(n, {"p0"}) for n in "abc"]
    participants.append(_participant("x", set(), status="DROPPED"))
    out = calculate_refund(participants, problems, 1000, reference_day_start=DAY_START)
    bonuses = [row.refund_amount - 1000 for row in out.active_results]
    assert bonuses == [333, 333, 333]
    assert out.dropped_pool - sum(bonuses) == 1


def test_future_submission_counts_as_submitted_but_never_missed():
    problems = _past_problems(2) + [Problem(id="future", assigned_date=DAY_START + timedelta(days=1))]
    participants = [_participant("early", {"p0", "p1", "future"}), _participant("late", {"p0", "p1"})]
    out = calculate_refund(participants, problems, 10000, reference_day_start=DAY_START)
    by_id = _rows_by_id(out)
    assert by_id["early"].submitted_count == 3
    assert by_id["late"].submitted_count == 2
    assert by_id["early"].missed_count == by_id["late"].missed_count == 0
    assert by_id["early"].total_problems == 3


def test_problem_dated_today_is_not_missed():
    problems = [Problem(id="today", assigned_date=DAY_START)]
    out = calculate_refund([_participant("a", set())], problems, 10000, reference_day_start=DAY_START)
    assert out.results[0].missed_count == 0


def test_unknown_submission_ids_are_ignored_for_missed_count():
    problems = _past_problems(3)
    participants = [_participant("a", {"p0", "p1", "p2", "ghost"})]
    out = calculate_refund(participants, problems, 10000, reference_day_start=DAY_START)
    assert out.results[0].missed_count == 0
    assert out.results[0].submitted_count == 4


def test_plain_dates_compare_against_cutoff_wall_date():
    problems = [
        Problem(id="yesterday", assigned_date=date(2025, 3, 10)),
        Problem(id="today", assigned_date=date(2025, 3, 11)),
    ]
    out = calculate_refund([_participant("a", set())], problems, 10000, reference_day_start=DAY_START)
    assert out.results[0].missed_count == 1


def test_naive_datetimes_are_read_as_utc():
    # 2025-03-11 00:00 KST == 2025-03-10 15:00 UTC
    problems = [
        Problem(id="before", assigned_date=datetime(2025, 3, 10, 14, 59)),
        Problem(id="at_cutoff", assigned_date=datetime(2025, 3, 10, 15, 0)),
    ]
    out = calculate_refund([_participant("a", set())], problems, 10000, reference_day_start=DAY_START)
    assert out.results[0].missed_count == 1


def test_duplicate_submission_ids_collapse():
    participant = ParticipantInput(
        identifier="a", is_paid=True, status="ACTIVE", submitted_problem_ids=["p0", "p0", "p1"]
    )
    assert participant.submitted_problem_ids == frozenset({"p0", "p1"})
    out = calculate_refund([participant], _past_problems(2), 10000, reference_day_start=DAY_START)
    assert out.results[0].submitted_count == 2


def test_caller_sequences_are_not_mutated():
    problems = _past_problems(4)
    participants = [
        _participant("worst", _all_but(problems, 2)),
        _participant("best", _all_but(problems, 0)),
    ]
    snapshot = list(participants)
    problems_snapshot = list(problems)
    out = calculate_refund(participants, problems, 10000, reference_day_start=DAY_START)
    assert participants == snapshot
    assert problems == problems_snapshot
    assert [row.identifier for row in out.results] == ["best", "worst"]


def test_same_inputs_give_identical_output():
    problems = _past_problems(5)
    participants = [
        _participant("a", _all_but(problems, 1)),
        _participant("b", _all_but(problems, 0)),
        _participant("c", set()),
    ]
    first = calculate_refund(participants, problems, 15000, reference_day_start=DAY_START)
    second = calculate_refund(participants, problems, 15000, reference_day_start=DAY_START)
    assert first == second


def test_zero_entry_fee_and_no_problems():
    out = calculate_refund([_participant("a", set())], [], 0, reference_day_start=DAY_START)
    assert out.total_pool == 0
    row = out.results[0]
    assert row.rank == 1
    assert row.refund_amount == 0
    assert row.total_problems == 0


def test_negative_entry_fee_is_rejected():
    with pytest.raises(ValueError):
        calculate_refund([], [], -1, reference_day_start=DAY_START)


def test_reference_day_defaults_to_current_day():
    problems = [
        Problem(id="old", assigned_date=datetime(2000, 1, 1, tzinfo=KST)),
        Problem(id="far", assigned_date=datetime(2999, 1, 1, tzinfo=KST)),
    ]
    out = calculate_refund([_participant("a", set())], problems, 10000)
    assert out.results[0].missed_count == 1


def test_custom_threshold_and_distribution():
    problems = _past_problems(4)
    participants = [
        _participant("a", _all_but(problems, 0)),
        _participant("b", _all_but(problems, 1)),
        _participant("c", _all_but(problems, 2)),
    ]
    out = calculate_refund(
        participants,
        problems,
        10000,
        reference_day_start=DAY_START,
        distribution={1: 100},
        drop_threshold=2,
    )
    by_id = _rows_by_id(out)
    assert by_id["c"].is_dropped is True
    assert by_id["a"].refund_amount == 20000
    assert by_id["b"].rank == 2
    assert by_id["b"].refund_amount == 10000


def test_decimal_shares_floor_from_the_decimal_value():
    problems = _past_problems(1)
    participants = [_participant("a", {"p0"}), _participant("x", set(), status="DROPPED")]
    settings = StudySettings(refund_distribution={1: 33.3, 2: 0.7})
    out = calculate_refund(
        participants,
        problems,
        1000,
        reference_day_start=DAY_START,
        distribution=settings.refund_distribution,
    )
    by_id = _rows_by_id(out)
    assert by_id["a"].refund_percentage == 33.3
    assert by_id["a"].refund_amount - 1000 == 333


def test_rank_labels():
    assert get_rank_label(None) == "Dropped"
    assert get_rank_label(1) == "Rank 1 (0 missed)"
    assert get_rank_label(2) == "Rank 2 (1 missed)"
    assert get_rank_label(3) == "Rank 3 (2 missed)"
    assert get_rank_label(7) == "Rank 7"
