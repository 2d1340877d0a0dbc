"""
Grading feature: Turn raw evaluation rows into SubjectGrade records.

Schools store one row per score with a free-text evaluation type
("Miệng", "15 phút", "1 tiết", "Giữa kỳ", "Cuối kỳ", the English names or
stored codes such as "mieng", "15_phut", "one_period", "giua_ky").
This module folds those rows into one SubjectGrade per subject per semester.
"""

import logging
from collections.abc import Iterable

from edugrade.features.grading.schemas import GradeRecord, ScorePoint, SemesterInput, SubjectGrade

logger = logging.getLogger(__name__)

# Checked in order; first keyword found in the lower-cased type wins.
EVALUATION_KEYWORDS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("oral", "miệng", "mieng"), "oral_score"),
    (("15", "fifteen"), "fifteen_min_score"),
    (("45", "1 tiết", "1_tiet", "one_period"), "forty_five_min_score"),
    (("midterm", "giữa", "giua"), "midterm_score"),
    (("final", "cuối", "cuoi"), "final_score"),
)

SEMESTER_NAMES = {"HK1": "Học kỳ 1"}
DEFAULT_SEMESTER_NAME = "Học kỳ 2"


def classify_evaluation_type(evaluation_type: str) -> str | None:
    """Map a free-text evaluation type to a SubjectGrade score field, or None."""
    text = (evaluation_type or "").lower()
    for keywords, field in EVALUATION_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return field
    return None


def group_grade_records(records: Iterable[GradeRecord]) -> list[SemesterInput]:
    """Group evaluation rows by (academic year, semester), then by subject.

    Semesters and subjects keep first-seen order. Several scores for the same
    component (a term usually has more than one oral or 15-minute test) are
    averaged into that component. Unknown evaluation types are skipped.
    """
    semesters: dict[tuple[str, str], dict[str, dict]] = {}

    for record in records:
        key = (record.academic_year, record.semester)
        subjects = semesters.setdefault(key, {})
        subject = subjects.setdefault(record.subject_id, {
            "subject_id": record.subject_id,
            "subject_name": record.subject_name,
            "credits": 1,
            "scores": {},
        })
        if record.credits is not None:
            subject["credits"] = record.credits

        field = classify_evaluation_type(record.evaluation_type)
        if field is None:
            logger.debug(
                f"Skipping unknown evaluation type '{record.evaluation_type}' "
                f"for subject {record.subject_id}"
            )
            continue
        subject["scores"].setdefault(field, []).append(record.score)

    return [
        SemesterInput(
            semester_id=f"{academic_year}-{semester}",
            semester_name=SEMESTER_NAMES.get(semester, DEFAULT_SEMESTER_NAME),
            academic_year=academic_year,
            grades=[_build_subject_grade(subject) for subject in subjects.values()],
        )
        for (academic_year, semester), subjects in semesters.items()
    ]


def _build_subject_grade(subject: dict) -> SubjectGrade:
    components = {field: sum(scores) / len(scores) for field, scores in subject["scores"].items()}
    return SubjectGrade(
        subject_id=subject["subject_id"],
        subject_name=subject["subject_name"],
        credits=subject["credits"],
        **components,
    )


def build_score_history(records: Iterable[GradeRecord]) -> list[ScorePoint]:
    """Dated score points for trend analysis, in record order.

    Rows without ``recorded_at`` carry no date and are left out.
    """
    return [
        ScorePoint(date=record.recorded_at, score=record.score)
        for record in records
        if record.recorded_at is not None
    ]
