"""
Record shaper: turns raw add-exam form input into a validated ExamRecord.
Handles full (TYT) vs single-subject (branch) field population and
sub-subject breakdown aggregation for Social and Science.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from engine import is_blank, net, parse_count
from tracker.models import (
    SUB_SUBJECTS,
    AnswerPair,
    Breakdown,
    ExamKind,
    ExamRecord,
    Subject,
)

logger = logging.getLogger(__name__)

# Raw widget value: number, numeric string, or None/"" for an empty field.
RawPair = Tuple[object, object]


class TrackerError(Exception):
    """Base class for errors shown to the user."""


class ValidationError(TrackerError):
    """Local input problem, raised before any request is made."""


@dataclass
class ExamForm:
    """
    Raw add-exam form state.

    Args:
        name: Exam name as typed.
        kind: Full or single-subject exam.
        subject: Chosen subject for single-subject exams.
        entries: Direct (correct, incorrect) per subject.
        breakdowns: (correct, incorrect) per sub-subject name, e.g. "history".
    """
    name: str = ""
    kind: ExamKind = ExamKind.FULL
    subject: Optional[Subject] = None
    entries: Dict[Subject, RawPair] = field(default_factory=dict)
    breakdowns: Dict[str, RawPair] = field(default_factory=dict)

    def entry(self, subject: Subject) -> RawPair:
        return self.entries.get(subject, (None, None))

    def sub_entry(self, name: str) -> RawPair:
        return self.breakdowns.get(name, (None, None))


def pair_filled(pair: RawPair) -> bool:
    correct, incorrect = pair
    return not (is_blank(correct) and is_blank(incorrect))


def breakdown_used(form: ExamForm, group: Subject) -> bool:
    """True when any sub-subject field of the group was filled in."""
    return any(pair_filled(form.sub_entry(name)) for name in SUB_SUBJECTS.get(group, ()))


def build_breakdown(form: ExamForm, group: Subject) -> Breakdown:
    """Every sub-subject of the group, with blank fields stored as 0."""
    pairs = {}
    for name in SUB_SUBJECTS[group]:
        correct, incorrect = form.sub_entry(name)
        pairs[name] = AnswerPair(int(parse_count(correct)), int(parse_count(incorrect)))
    return Breakdown(group, pairs)


def subject_net(form: ExamForm, subject: Subject) -> Tuple[float, Optional[Breakdown]]:
    """Net for one subject: breakdown sum if one was entered, else the direct pair."""
    if breakdown_used(form, subject):
        breakdown = build_breakdown(form, subject)
        return breakdown.net, breakdown
    correct, incorrect = form.entry(subject)
    return net(correct, incorrect), None


def validate(form: ExamForm) -> None:
    """Raise ValidationError for anything that must block the save."""
    if is_blank(form.name):
        raise ValidationError("Exam name is required")

    if form.kind == ExamKind.SINGLE_SUBJECT and form.subject is None:
        raise ValidationError("Select a subject for a single-subject exam")

    # Only values that end up in the record are checked
    for value, whole in _used_values(form):
        number = parse_count(value)
        if number < 0:
            raise ValidationError("Correct and incorrect counts cannot be negative")
        if whole and not number.is_integer():
            raise ValidationError("Breakdown counts must be whole numbers")

    if form.kind == ExamKind.SINGLE_SUBJECT:
        return

    missing = []
    for subject in Subject:
        filled = pair_filled(form.entry(subject)) or breakdown_used(form, subject)
        if not filled:
            missing.append(subject.label)
    if missing:
        raise ValidationError(f"Fill in all subjects: {', '.join(missing)} missing")


def shape_exam(form: ExamForm) -> ExamRecord:
    """
    Validate the form and build the record to persist.

    Full exams get all four nets and total = their sum. Single-subject exams
    keep only the chosen net (others forced to 0) and total = that net.
    Breakdown columns are kept only for groups where a breakdown was used.

    Returns:
        ExamRecord ready for DatabaseClient.insert_exam
    """
    validate(form)
    name = form.name.strip()

    if form.kind == ExamKind.SINGLE_SUBJECT:
        chosen = form.subject
        chosen_net, breakdown = subject_net(form, chosen)
        nets = {subject: 0.0 for subject in Subject}
        nets[chosen] = chosen_net
        record = ExamRecord(
            name=name,
            kind=ExamKind.SINGLE_SUBJECT,
            subject=chosen,
            turkish_net=nets[Subject.LANGUAGE],
            social_net=nets[Subject.SOCIAL],
            math_net=nets[Subject.MATH],
            science_net=nets[Subject.SCIENCE],
            total_net=chosen_net,
            social_breakdown=breakdown if chosen == Subject.SOCIAL else None,
            science_breakdown=breakdown if chosen == Subject.SCIENCE else None,
        )
    else:
        turkish, _ = subject_net(form, Subject.LANGUAGE)
        social, social_breakdown = subject_net(form, Subject.SOCIAL)
        math, _ = subject_net(form, Subject.MATH)
        science, science_breakdown = subject_net(form, Subject.SCIENCE)
        record = ExamRecord(
            name=name,
            kind=ExamKind.FULL,
            turkish_net=turkish,
            social_net=social,
            math_net=math,
            science_net=science,
            total_net=turkish + social + math + science,
            social_breakdown=social_breakdown,
            science_breakdown=science_breakdown,
        )

    logger.debug("Shaped %s exam %r: total_net=%s", record.kind.value, record.name, record.total_net)
    return record


def preview_nets(form: ExamForm) -> Dict[Subject, float]:
    """Live nets for the form, without validation (shown while typing)."""
    return {subject: subject_net(form, subject)[0] for subject in Subject}


def _used_values(form: ExamForm):
    """(value, must_be_whole) for every field the shaped record is built from."""
    subjects = [form.subject] if form.kind == ExamKind.SINGLE_SUBJECT else list(Subject)
    for subject in subjects:
        if breakdown_used(form, subject):
            for name in SUB_SUBJECTS[subject]:
                for value in form.sub_entry(name):
                    yield value, True
        else:
            for value in form.entry(subject):
                yield value, False
