"""
Unit tests for folding raw evaluation rows into subject grades.
"""

from datetime import datetime, timezone

import pytest

from edugrade.features.grading.gpa_calculator import calculate_subject_average
from edugrade.features.grading.records import (
    build_score_history,
    classify_evaluation_type,
    group_grade_records,
)
from edugrade.features.grading.schemas import GradeRecord


def _row(subject_id: str, evaluation_type: str, score: float, semester: str = "HK1",
         academic_year: str = "2024-2025", **extra) -> GradeRecord:
    return GradeRecord(
        subject_id=subject_id,
        subject_name=subject_id.title(),
        evaluation_type=evaluation_type,
        score=score,
        semester=semester,
        academic_year=academic_year,
        **extra,
    )


class TestClassifyEvaluationType:
    @pytest.mark.parametrize("text,field", [
        ("Miệng", "oral_score"),
        ("oral", "oral_score"),
        ("Kiểm tra 15 phút", "fifteen_min_score"),
        ("1 tiết", "forty_five_min_score"),
        ("45 minutes", "forty_five_min_score"),
        ("Giữa kỳ", "midterm_score"),
        ("Midterm", "midterm_score"),
        ("Cuối kỳ", "final_score"),
        ("FINAL EXAM", "final_score"),
    ])
    def test_known_types(self, text, field):
        assert classify_evaluation_type(text) == field

    @pytest.mark.parametrize("code,field", [
        ("mieng", "oral_score"),
        ("fifteen_min", "fifteen_min_score"),
        ("15_phut", "fifteen_min_score"),
        ("one_period", "forty_five_min_score"),
        ("1_tiet", "forty_five_min_score"),
        ("giua_ky", "midterm_score"),
        ("cuoi_ky", "final_score"),
    ])
    def test_stored_component_codes(self, code, field):
        assert classify_evaluation_type(code) == field

    @pytest.mark.parametrize("text", ["project", "", "homework"])
    def test_unknown_types(self, text):
        assert classify_evaluation_type(text) is None


class TestGroupGradeRecords:
    def test_groups_by_semester_then_subject(self):
        rows = [
            _row("math", "Miệng", 8),
            _row("math", "Cuối kỳ", 7),
            _row("lit", "Giữa kỳ", 6),
            _row("math", "Final", 9, semester="HK2"),
        ]
        semesters = group_grade_records(rows)

        assert [s.semester_id for s in semesters] == ["2024-2025-HK1", "2024-2025-HK2"]
        assert [s.semester_name for s in semesters] == ["Học kỳ 1", "Học kỳ 2"]
        assert semesters[0].academic_year == "2024-2025"

        math, lit = semesters[0].grades
        assert math.subject_id == "math"
        assert math.oral_score == 8
        assert math.final_score == 7
        assert calculate_subject_average(math) == 7.25
        assert lit.midterm_score == 6
        assert semesters[1].grades[0].final_score == 9

    def test_repeated_component_scores_are_averaged(self):
        semesters = group_grade_records([_row("math", "Miệng", 4), _row("math", "mieng", 10)])
        assert semesters[0].grades[0].oral_score == 7

    def test_averaged_components_feed_subject_average(self):
        semesters = group_grade_records([
            _row("math", "15 phút", 5),
            _row("math", "15_phut", 9),
            _row("math", "15 phút", 7),
            _row("math", "cuoi_ky", 8),
        ])
        grade = semesters[0].grades[0]
        assert grade.fifteen_min_score == 7
        # (7 + 8 * 3) / 4
        assert calculate_subject_average(grade) == 7.75

    def test_credits_default_and_override(self):
        semesters = group_grade_records([
            _row("math", "Miệng", 8),
            _row("lit", "Miệng", 8, credits=3),
        ])
        assert [g.credits for g in semesters[0].grades] == [1, 3]

    def test_unknown_type_keeps_subject_ungraded(self):
        semesters = group_grade_records([_row("art", "Dự án", 9)])
        grade = semesters[0].grades[0]
        assert grade.subject_id == "art"
        assert calculate_subject_average(grade) is None

    def test_empty(self):
        assert group_grade_records([]) == []


class TestBuildScoreHistory:
    def test_uses_recorded_dates(self):
        first = datetime(2024, 9, 10, tzinfo=timezone.utc)
        second = datetime(2024, 10, 1, tzinfo=timezone.utc)
        history = build_score_history([
            _row("math", "Miệng", 6, recorded_at=second),
            _row("math", "15 phút", 8),
            _row("lit", "Giữa kỳ", 5, recorded_at=first),
        ])
        assert [(p.date, p.score) for p in history] == [(second, 6), (first, 5)]

    def test_undated_rows(self):
        assert build_score_history([_row("math", "Miệng", 6)]) == []
