"""
Exam result types.

The `exams` table stores one flat row per result. Here the row is split into
an immutable `ExamRecord` (what the user submitted, already shaped) and an
`ExamResult` (the record plus the server-assigned id, timestamp and owner).
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

from engine import net


class ExamKind(str, Enum):
    FULL = "TYT"
    SINGLE_SUBJECT = "BRANCH"


class Subject(str, Enum):
    LANGUAGE = "Turkish"
    SOCIAL = "Social"
    MATH = "Math"
    SCIENCE = "Science"

    @property
    def column(self) -> str:
        """Net column in the exams table (e.g. social_net)."""
        return f"{SUBJECT_KEYS[self]}_net"

    @property
    def key(self) -> str:
        return SUBJECT_KEYS[self]

    @property
    def label(self) -> str:
        return SUBJECT_LABELS[self]


SUBJECT_KEYS = {
    Subject.LANGUAGE: "turkish",
    Subject.SOCIAL: "social",
    Subject.MATH: "math",
    Subject.SCIENCE: "science",
}

SUBJECT_LABELS = {
    Subject.LANGUAGE: "Turkish",
    Subject.SOCIAL: "Social Studies",
    Subject.MATH: "Mathematics",
    Subject.SCIENCE: "Science",
}

# Sub-subjects per breakdown group, in display order.
SUB_SUBJECTS: Dict[Subject, Tuple[str, ...]] = {
    Subject.SOCIAL: ("history", "geography", "philosophy", "religion"),
    Subject.SCIENCE: ("physics", "chemistry", "biology"),
}

SUB_SUBJECT_LABELS = {
    "history": ("History", "His"),
    "geography": ("Geography", "Geo"),
    "philosophy": ("Philosophy", "Phi"),
    "religion": ("Religion", "Rel"),
    "physics": ("Physics", "Phy"),
    "chemistry": ("Chemistry", "Che"),
    "biology": ("Biology", "Bio"),
}


@dataclass(frozen=True)
class AnswerPair:
    correct: int
    incorrect: int

    @property
    def net(self) -> float:
        return net(self.correct, self.incorrect)


@dataclass(frozen=True)
class Breakdown:
    """Sub-subject answers for one group (Social or Science).

    A shaped record always carries every sub-subject of the group. Rows read
    back from the store may hold only some of them.
    """
    group: Subject
    pairs: Dict[str, AnswerPair] = field(default_factory=dict)

    def __post_init__(self):
        if self.group not in SUB_SUBJECTS:
            raise ValueError(f"{self.group.value} has no sub-subjects")
        unknown = set(self.pairs) - set(SUB_SUBJECTS[self.group])
        if unknown:
            raise ValueError(f"Unknown sub-subjects for {self.group.value}: {sorted(unknown)}")

    def __hash__(self):
        return hash((self.group, tuple(self.items())))

    @property
    def net(self) -> float:
        return sum(pair.net for pair in self.pairs.values())

    def items(self) -> List[Tuple[str, AnswerPair]]:
        """Present pairs in display order."""
        return [(name, self.pairs[name]) for name in SUB_SUBJECTS[self.group] if name in self.pairs]

    def to_columns(self) -> Dict[str, int]:
        out = {}
        for name, pair in self.items():
            out[f"{name}_correct"] = pair.correct
            out[f"{name}_incorrect"] = pair.incorrect
        return out

    @classmethod
    def from_row(cls, group: Subject, row: dict) -> Optional["Breakdown"]:
        """None when no sub-subject of the group was stored."""
        pairs = {}
        for name in SUB_SUBJECTS[group]:
            correct = row.get(f"{name}_correct")
            incorrect = row.get(f"{name}_incorrect")
            if correct is None and incorrect is None:
                continue
            pairs[name] = AnswerPair(int(correct or 0), int(incorrect or 0))
        if not pairs:
            return None
        return cls(group, pairs)


@dataclass(frozen=True)
class ExamRecord:
    """A complete, validated exam record ready to be inserted."""
    name: str
    kind: ExamKind
    turkish_net: float
    social_net: float
    math_net: float
    science_net: float
    total_net: float
    subject: Optional[Subject] = None
    social_breakdown: Optional[Breakdown] = None
    science_breakdown: Optional[Breakdown] = None

    def net_for(self, subject: Subject) -> float:
        return getattr(self, subject.column)

    def breakdown_for(self, subject: Subject) -> Optional[Breakdown]:
        if subject == Subject.SOCIAL:
            return self.social_breakdown
        if subject == Subject.SCIENCE:
            return self.science_breakdown
        return None

    def to_row(self, user_id: str) -> dict:
        """Insert payload. Sub-subject columns are left out unless a breakdown exists."""
        row = {
            "exam_name": self.name,
            "exam_type": self.kind.value,
            "branch_name": self.subject.value if self.subject else None,
            "turkish_net": self.turkish_net,
            "social_net": self.social_net,
            "math_net": self.math_net,
            "science_net": self.science_net,
            "total_net": self.total_net,
            "user_id": user_id,
        }
        for breakdown in (self.social_breakdown, self.science_breakdown):
            if breakdown is not None:
                row.update(breakdown.to_columns())
        return row

    @classmethod
    def from_row(cls, row: dict) -> "ExamRecord":
        branch = row.get("branch_name")
        return cls(
            name=row.get("exam_name") or "",
            kind=ExamKind(row.get("exam_type") or ExamKind.FULL.value),
            turkish_net=float(row.get("turkish_net") or 0),
            social_net=float(row.get("social_net") or 0),
            math_net=float(row.get("math_net") or 0),
            science_net=float(row.get("science_net") or 0),
            total_net=float(row.get("total_net") or 0),
            subject=Subject(branch) if branch else None,
            social_breakdown=Breakdown.from_row(Subject.SOCIAL, row),
            science_breakdown=Breakdown.from_row(Subject.SCIENCE, row),
        )


@dataclass(frozen=True)
class ExamResult:
    """A stored exam row."""
    id: str
    created_at: Optional[datetime]
    owner: str
    record: ExamRecord

    @property
    def kind(self) -> ExamKind:
        return self.record.kind

    @property
    def subject(self) -> Optional[Subject]:
        return self.record.subject

    @property
    def total_net(self) -> float:
        return self.record.total_net

    @classmethod
    def from_row(cls, row: dict) -> "ExamResult":
        return cls(
            id=str(row.get("id") or ""),
            created_at=parse_timestamp(row.get("created_at")),
            owner=str(row.get("user_id") or ""),
            record=ExamRecord.from_row(row),
        )


def parse_timestamp(value) -> Optional[datetime]:
    """Parse a PostgREST timestamptz string. Returns None if missing or malformed."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).replace("Z", "+00:00")
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        # Older interpreters reject fractional seconds that are not 3 or 6 digits
        head, sep, tail = text.partition(".")
        if not sep:
            return None
        digits = "".join(ch for ch in tail if ch.isdigit())
        offset = tail[len(digits):]
        try:
            return datetime.fromisoformat(f"{head}.{digits[:6].ljust(6, '0')}{offset}")
        except ValueError:
            return None
