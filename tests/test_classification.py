# ABOUTME: Tests quadrant labelling, the engagement matrix, and retention risk rules.
# ABOUTME: Uses fixed "now" dates so staleness checks are deterministic.

from datetime import date

import pytest

from src.tutorpulse.classification import (
    assess_retention_risk,
    engagement_matrix,
    quadrant_label,
    risk_report_frame,
    risk_tier,
    session_quadrant,
)
from src.tutorpulse.config import AnalyticsConfig
from src.tutorpulse.schemas import Session, Student

NOW = date(2024, 6, 1)


def _session(sid, student_id, day, status="completed", engagement=7, comprehension=7):
    return Session(
        id=sid,
        student_id=student_id,
        scheduled_date=day,
        duration_minutes=60,
        amount=50.0,
        status=status,
        engagement_score=engagement,
        comprehension_score=comprehension,
    )


@pytest.mark.parametrize(
    "engagement, comprehension, expected",
    [
        (5.5, 5.5, "Thriving"),
        (10, 10, "Thriving"),
        (5.5, 5.49, "Trying Hard"),
        (9, 1, "Trying Hard"),
        (5.49, 5.5, "Needs Challenge"),
        (1, 10, "Needs Challenge"),
        (5.49, 5.49, "At Risk"),
        (1, 1, "At Risk"),
    ],
)
def test_quadrant_label_boundaries(engagement, comprehension, expected):
    assert quadrant_label(engagement, comprehension) == expected


def test_quadrant_label_is_total_over_integer_grid():
    labels = {"Thriving", "Trying Hard", "Needs Challenge", "At Risk"}
    seen = set()
    for e in range(1, 11):
        for c in range(1, 11):
            label = quadrant_label(e, c)
            assert label in labels
            seen.add(label)
    assert seen == labels


def test_session_quadrant_uses_its_own_midpoint():
    assert session_quadrant(6, 6) == "Thriving"
    assert session_quadrant(6, 5) == "Trying Hard"
    assert session_quadrant(5, 6) == "Bored/Easy"
    assert session_quadrant(5, 5) == "Struggling"


def test_engagement_matrix_averages_completed_sessions_per_student():
    students = [Student(id="s1", name="Ana"), Student(id="s2", name="Ben")]
    sessions = [
        _session("a", "s1", "2024-05-01", engagement=8, comprehension=4),
        _session("b", "s1", "2024-05-08", engagement=6, comprehension=4),
        _session("c", "s1", "2024-05-15", status="cancelled", engagement=1, comprehension=1),
        _session("d", "s2", "2024-05-02", engagement=3, comprehension=9),
    ]

    matrix = engagement_matrix(sessions, students)

    assert [p.student_id for p in matrix] == ["s1", "s2"]
    ana, ben = matrix
    assert ana.avg_engagement == 7
    assert ana.avg_comprehension == 4
    assert ana.session_count == 2
    assert ana.quadrant == "Trying Hard"
    assert ben.quadrant == "Needs Challenge"
    assert ana.x_pct == pytest.approx((7 - 1) / 9 * 85 + 5)
    assert ben.y_pct == pytest.approx(95 - (9 - 1) / 9 * 85)


def test_engagement_matrix_empty_without_completed_sessions():
    assert engagement_matrix([_session("a", "s1", "2024-05-01", status="scheduled")]) == []


@pytest.mark.parametrize(
    "count, expected",
    [(0, "Low"), (1, "Medium"), (2, "Medium"), (3, "High"), (4, "High")],
)
def test_risk_tier_follows_reason_count(count, expected):
    assert risk_tier(["reason"] * count) == expected


def test_student_without_completed_sessions_is_flagged():
    students = [Student(id="s1", name="Ana", status="active")]
    sessions = [_session("a", "s1", "2024-05-30", status="scheduled")]

    risks = assess_retention_risk(students, sessions, now=NOW)

    assert len(risks) == 1
    assert "No completed sessions" in risks[0].reasons
    assert risks[0].tier in ("Medium", "High")
    assert risks[0].flags == ("no_completed_sessions",)


def test_student_with_no_sessions_at_all_is_flagged():
    risks = assess_retention_risk([Student(id="s1", name="Ana")], [], now=NOW)
    assert risks[0].reasons == ("No completed sessions",)
    assert risks[0].tier == "Medium"


def test_stale_student_reports_days_since_last_session():
    students = [Student(id="s1", name="Ana")]
    sessions = [
        _session("a", "s1", "2024-04-01"),
        _session("b", "s1", "2024-05-01"),
    ]

    risks = assess_retention_risk(students, sessions, now=NOW)

    assert risks[0].reasons == ("No session in 31 days",)
    assert risks[0].flags == ("stale",)


def test_exactly_twenty_one_days_is_not_stale():
    students = [Student(id="s1", name="Ana")]
    sessions = [_session("a", "s1", "2024-05-11")]

    risks = assess_retention_risk(students, sessions, now=NOW)

    assert risks[0].reasons == ()
    assert risks[0].tier == "Low"


def test_high_cancellation_needs_three_sessions():
    students = [Student(id="s1", name="Ana"), Student(id="s2", name="Ben")]
    sessions = [
        _session("a", "s1", "2024-05-30"),
        _session("b", "s1", "2024-05-29", status="cancelled"),
        _session("c", "s2", "2024-05-30"),
        _session("d", "s2", "2024-05-29", status="cancelled"),
        _session("e", "s2", "2024-05-28", status="no-show"),
    ]

    risks = {r.student_id: r for r in assess_retention_risk(students, sessions, now=NOW)}

    assert risks["s1"].reasons == ()
    assert risks["s2"].reasons == ("67% cancellation rate",)


def test_cancellation_share_equal_to_threshold_is_not_flagged():
    students = [Student(id="s1", name="Ana")]
    sessions = [
        _session(f"x{day}", "s1", f"2024-05-{day}", status="cancelled" if day <= 24 else "completed")
        for day in range(22, 32)
    ]

    risks = assess_retention_risk(students, sessions, now=NOW)

    assert risks[0].flags == ()
    assert risks[0].tier == "Low"


def test_recent_average_equal_to_threshold_is_not_low():
    students = [Student(id="s1", name="Ana")]
    sessions = [
        _session("a", "s1", "2024-05-31", engagement=3, comprehension=4),
        _session("b", "s1", "2024-05-30", engagement=5, comprehension=4),
        _session("c", "s1", "2024-05-29", engagement=4, comprehension=4),
        _session("d", "s1", "2024-05-01", engagement=1, comprehension=1),
    ]

    risks = assess_retention_risk(students, sessions, now=NOW)

    assert risks[0].reasons == ()
    assert "low_engagement" not in risks[0].flags
    assert "low_comprehension" not in risks[0].flags


def test_low_recent_scores_use_three_latest_completed_sessions():
    students = [Student(id="s1", name="Ana")]
    sessions = [
        _session("a", "s1", "2024-05-01", engagement=10, comprehension=10),
        _session("b", "s1", "2024-05-30", engagement=2, comprehension=5),
        _session("c", "s1", "2024-05-20", engagement=3, comprehension=5),
        _session("d", "s1", "2024-05-25", engagement=4, comprehension=5),
    ]

    risks = assess_retention_risk(students, sessions, now=NOW)

    assert risks[0].reasons == ("Low recent engagement (3.0/10)",)
    assert risks[0].flags == ("low_engagement",)


def test_three_reasons_make_high_risk_and_sort_first():
    students = [
        Student(id="ok", name="Okay"),
        Student(id="bad", name="Bad"),
        Student(id="gone", name="Gone", status="graduated"),
    ]
    sessions = [
        _session("a", "ok", "2024-05-30"),
        _session("b", "bad", "2024-04-01", engagement=2, comprehension=2),
        _session("c", "bad", "2024-03-25", engagement=2, comprehension=2),
        _session("d", "bad", "2024-03-20", engagement=2, comprehension=2),
        _session("e", "bad", "2024-03-15", status="cancelled"),
        _session("f", "bad", "2024-03-10", status="no-show"),
    ]

    risks = assess_retention_risk(students, sessions, now=NOW)

    assert [r.student_id for r in risks] == ["bad", "ok"]
    bad = risks[0]
    assert bad.tier == "High"
    assert bad.flags == ("stale", "high_cancellation", "low_engagement", "low_comprehension")
    assert bad.reasons[1] == "40% cancellation rate"
    assert bad.reasons[3] == "Low recent comprehension (2.0/10)"


def test_thresholds_come_from_config():
    students = [Student(id="s1", name="Ana")]
    sessions = [_session("a", "s1", "2024-05-25")]
    strict = AnalyticsConfig(stale_after_days=5)

    assert assess_retention_risk(students, sessions, now=NOW)[0].reasons == ()
    assert assess_retention_risk(students, sessions, now=NOW, config=strict)[0].flags == ("stale",)


def test_risk_report_frame_has_one_row_per_student():
    risks = assess_retention_risk([Student(id="s1", name="Ana"), Student(id="s2", name="Ben")], [], now=NOW)

    frame = risk_report_frame(risks)

    assert list(frame["student_id"]) == ["s1", "s2"]
    assert list(frame["reason_count"]) == [1, 1]
    assert risk_report_frame([]).empty
