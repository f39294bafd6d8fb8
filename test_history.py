"""Dashboard derivations: filtering, stats, chart data and breakdown text."""
import pytest

from tracker.history import (
    ExamFilter,
    ExamStats,
    breakdown_nets,
    breakdown_text,
    chart_rows,
    chart_series,
    compute_stats,
    filter_exams,
    history_frame,
    score_tier,
)
from tracker.models import ExamKind, ExamResult, Subject


def exam(day, kind="TYT", branch=None, total=0.0, **columns):
    row = {
        "id": f"exam-{day}",
        "created_at": f"2025-03-{day:02d}T10:00:00+00:00",
        "user_id": "user-1",
        "exam_name": f"Exam on {day}",
        "exam_type": kind,
        "branch_name": branch,
        "total_net": total,
    }
    row.update(columns)
    return ExamResult.from_row(row)


@pytest.fixture
def exams():
    # newest first, as returned by list_exams
    return [
        exam(9, "BRANCH", "Science", total=12.5, science_net=12.5),
        exam(8, "TYT", total=80.0, turkish_net=30, social_net=15, math_net=20, science_net=15),
        exam(7, "BRANCH", "Social", total=23.5, social_net=23.5,
             history_correct=8, history_incorrect=0, geography_correct=7, geography_incorrect=1,
             philosophy_correct=4, philosophy_incorrect=0, religion_correct=5, religion_incorrect=1),
        exam(5, "TYT", total=70.0),
        exam(3, "BRANCH", "Science", total=10.0, science_net=10.0),
        exam(1, "TYT", total=75.5),
    ]


def test_full_filter_excludes_every_branch_exam(exams):
    flt = ExamFilter(ExamKind.FULL, Subject.SCIENCE)
    assert flt.subject is None
    picked = filter_exams(exams, flt)
    assert [e.id for e in picked] == ["exam-8", "exam-5", "exam-1"]
    assert all(e.kind == ExamKind.FULL for e in picked)


def test_branch_filter_matches_kind_and_subject(exams):
    for subject in Subject:
        picked = filter_exams(exams, ExamFilter(ExamKind.SINGLE_SUBJECT, subject))
        assert all(e.kind == ExamKind.SINGLE_SUBJECT and e.subject == subject for e in picked)
    science = filter_exams(exams, ExamFilter(ExamKind.SINGLE_SUBJECT, Subject.SCIENCE))
    assert [e.id for e in science] == ["exam-9", "exam-3"]


def test_branch_filter_defaults_to_first_subject(exams):
    flt = ExamFilter(ExamKind.SINGLE_SUBJECT)
    assert flt.subject == Subject.LANGUAGE
    assert filter_exams(exams, flt) == []


def test_compute_stats(exams):
    stats = compute_stats(filter_exams(exams, ExamFilter(ExamKind.FULL)))
    assert stats.total_exams == 3
    assert stats.best_total_net == 80.0
    assert stats.average_total_net == pytest.approx(75.166666, rel=1e-6)
    assert stats.last_exam_net == 80.0
    assert stats.improvement == 10.0


def test_compute_stats_edge_cases(exams):
    assert compute_stats([]) == ExamStats()
    single = compute_stats(filter_exams(exams, ExamFilter(ExamKind.SINGLE_SUBJECT, Subject.SOCIAL)))
    assert single.total_exams == 1
    assert single.improvement == 0.0
    assert single.last_exam_net == single.best_total_net == 23.5


def test_chart_rows_are_oldest_first(exams):
    rows = chart_rows(filter_exams(exams, ExamFilter(ExamKind.FULL)))
    assert [r["name"] for r in rows] == ["Exam 1", "Exam 2", "Exam 3"]
    assert [r["total"] for r in rows] == [75.5, 70.0, 80.0]
    assert rows[-1]["math"] == 20.0
    assert rows[0]["date"] == "01 Mar"


def test_chart_series_selection():
    full = ExamFilter(ExamKind.FULL)
    assert chart_series(full).field == "total"
    assert chart_series(full, "math").field == "math"
    branch = chart_series(ExamFilter(ExamKind.SINGLE_SUBJECT, Subject.SOCIAL), "math")
    assert branch.field == "total"
    assert branch.label == "Social Studies Net"
    with pytest.raises(ValueError):
        chart_series(full, "english")


def test_breakdown_only_lists_stored_pairs(exams):
    social_exam = exams[2]
    assert breakdown_nets(social_exam, Subject.SOCIAL) == [
        ("History", 8.0), ("Geography", 6.75), ("Philosophy", 4.0), ("Religion", 4.75),
    ]
    assert breakdown_text(social_exam, Subject.SOCIAL) == "His: 8.00, Geo: 6.75, Phi: 4.00, Rel: 4.75"
    assert breakdown_nets(social_exam, Subject.SCIENCE) == []
    assert breakdown_text(exams[0], Subject.SCIENCE) == ""

    partial = exam(2, total=3.0, physics_correct=3, physics_incorrect=0)
    assert breakdown_text(partial, Subject.SCIENCE) == "Phy: 3.00"


def test_score_tier():
    assert score_tier(80, 100) == "excellent"
    assert score_tier(65, 100) == "good"
    assert score_tier(40, 100) == "fair"
    assert score_tier(10, 100) == "low"
    assert score_tier(5, 0) == "low"


def test_history_frame_columns(exams):
    full = ExamFilter(ExamKind.FULL)
    frame = history_frame(filter_exams(exams, full), full)
    assert list(frame.columns) == [
        "Date", "Exam", "Turkish", "Social", "Social detail", "Math", "Science", "Science detail", "Total",
    ]
    assert frame["Total"].tolist() == [80.0, 70.0, 75.5]

    social = ExamFilter(ExamKind.SINGLE_SUBJECT, Subject.SOCIAL)
    frame = history_frame(filter_exams(exams, social), social)
    assert list(frame.columns) == ["Date", "Exam", "Detail", "Total"]
    assert frame.iloc[0]["Detail"].startswith("His: 8.00")

    math = ExamFilter(ExamKind.SINGLE_SUBJECT, Subject.MATH)
    assert history_frame([], math).empty
