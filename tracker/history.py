"""
Read-only derivations for the dashboard: filtering, statistics, chart rows
and breakdown text. Everything is recomputed from the fetched exams on each
render; nothing here is persisted.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import pandas as pd

from engine import format_net
from tracker.models import SUB_SUBJECT_LABELS, ExamKind, ExamResult, Subject

logger = logging.getLogger(__name__)

CHART_VIEWS = ("total", "turkish", "social", "math", "science")

# Chart views: (label, colour)
SERIES_STYLE = {
    "total": ("Total Net", "#6366f1"),
    "turkish": ("Turkish Net", "#f97316"),
    "social": ("Social Studies Net", "#8b5cf6"),
    "math": ("Mathematics Net", "#3b82f6"),
    "science": ("Science Net", "#10b981"),
}

# Minimum share of the best score for each tier, highest first
SCORE_TIERS = ((80, "excellent"), (60, "good"), (40, "fair"))


@dataclass(frozen=True)
class ExamFilter:
    kind: ExamKind = ExamKind.FULL
    subject: Optional[Subject] = None

    def __post_init__(self):
        # Full exams ignore the subject; branch view defaults to the first subject
        if self.kind == ExamKind.FULL and self.subject is not None:
            object.__setattr__(self, "subject", None)
        elif self.kind == ExamKind.SINGLE_SUBJECT and self.subject is None:
            object.__setattr__(self, "subject", Subject.LANGUAGE)

    def matches(self, exam: ExamResult) -> bool:
        if self.kind == ExamKind.FULL:
            return exam.kind == ExamKind.FULL
        return exam.kind == ExamKind.SINGLE_SUBJECT and exam.subject == self.subject


@dataclass(frozen=True)
class ExamStats:
    total_exams: int = 0
    best_total_net: float = 0.0
    average_total_net: float = 0.0
    last_exam_net: float = 0.0
    improvement: float = 0.0


@dataclass(frozen=True)
class ChartSeries:
    view: str
    field: str
    label: str
    color: str


def filter_exams(exams: List[ExamResult], flt: ExamFilter) -> List[ExamResult]:
    """Keep order (newest first, as fetched)."""
    return [exam for exam in exams if flt.matches(exam)]


def compute_stats(exams: List[ExamResult]) -> ExamStats:
    """Stats over an already filtered, newest-first list."""
    if not exams:
        return ExamStats()
    totals = [exam.total_net for exam in exams]
    last = totals[0]
    previous = totals[1] if len(totals) > 1 else last
    return ExamStats(
        total_exams=len(totals),
        best_total_net=max(totals),
        average_total_net=sum(totals) / len(totals),
        last_exam_net=last,
        improvement=last - previous,
    )


def chart_series(flt: ExamFilter, view: str = "total") -> ChartSeries:
    """Which stored field to plot. Branch exams always plot their total."""
    if view not in CHART_VIEWS:
        raise ValueError(f"Unknown chart view: {view}")
    if flt.kind == ExamKind.SINGLE_SUBJECT:
        label, color = SERIES_STYLE[flt.subject.key]
        return ChartSeries("total", "total", label, color)
    label, color = SERIES_STYLE[view]
    return ChartSeries(view, view, label, color)


def chart_rows(exams: List[ExamResult]) -> List[dict]:
    """One point per exam, oldest first."""
    rows = []
    for index, exam in enumerate(reversed(exams), start=1):
        record = exam.record
        rows.append({
            "name": f"Exam {index}",
            "date": exam.created_at.strftime("%d %b") if exam.created_at else "",
            "exam_name": record.name,
            "total": record.total_net,
            "turkish": record.turkish_net,
            "social": record.social_net,
            "math": record.math_net,
            "science": record.science_net,
            "exam": exam,
        })
    return rows


def breakdown_nets(exam: ExamResult, group: Subject) -> List[Tuple[str, float]]:
    """(label, net) for every stored sub-subject of the group."""
    breakdown = exam.record.breakdown_for(group)
    if breakdown is None:
        return []
    return [(SUB_SUBJECT_LABELS[name][0], pair.net) for name, pair in breakdown.items()]


def breakdown_text(exam: ExamResult, group: Subject) -> str:
    """Short form for the history table, e.g. 'His: 8.00, Geo: 6.75'."""
    breakdown = exam.record.breakdown_for(group)
    if breakdown is None:
        return ""
    return ", ".join(f"{SUB_SUBJECT_LABELS[name][1]}: {format_net(pair.net)}" for name, pair in breakdown.items())


def score_tier(value: float, max_value: float) -> str:
    if max_value <= 0:
        return "low"
    percentage = value / max_value * 100
    for threshold, tier in SCORE_TIERS:
        if percentage >= threshold:
            return tier
    return "low"


def history_frame(exams: List[ExamResult], flt: ExamFilter) -> pd.DataFrame:
    """History table for the current filter, newest first."""
    rows = []
    for exam in exams:
        record = exam.record
        row: Dict[str, object] = {
            "Date": exam.created_at.strftime("%Y-%m-%d") if exam.created_at else "",
            "Exam": record.name,
        }
        if flt.kind == ExamKind.FULL:
            row["Turkish"] = round(record.turkish_net, 2)
            row["Social"] = round(record.social_net, 2)
            row["Social detail"] = breakdown_text(exam, Subject.SOCIAL)
            row["Math"] = round(record.math_net, 2)
            row["Science"] = round(record.science_net, 2)
            row["Science detail"] = breakdown_text(exam, Subject.SCIENCE)
        elif flt.subject in (Subject.SOCIAL, Subject.SCIENCE):
            row["Detail"] = breakdown_text(exam, flt.subject)
        row["Total"] = round(record.total_net, 2)
        rows.append(row)
    logger.debug("History table: %d rows", len(rows))
    return pd.DataFrame(rows)
