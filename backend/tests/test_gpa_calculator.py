"""
Unit tests for the Vietnamese GPA calculator and its threshold tables.
"""

import pytest

from edugrade.features.grading.gpa_calculator import (
    calculate_cumulative_gpa,
    calculate_overall_average,
    calculate_required_grade,
    calculate_semester_gpa,
    calculate_subject_average,
    convert_to_4_point_scale,
    format_gpa,
    get_academic_standing,
    get_letter_grade_from_score,
    get_progress_to_next_standing,
)
from edugrade.features.grading.scales import (
    ACADEMIC_STANDINGS,
    FOUR_POINT_SCALE,
    STANDING_SCALE,
    round_half_up,
)
from edugrade.features.grading.schemas import SemesterGPA, SubjectGrade, WeightingPolicy


def _grade(subject_id: str = "s1", credits: int = 1, **scores) -> SubjectGrade:
    return SubjectGrade(subject_id=subject_id, subject_name=subject_id.upper(), credits=credits, **scores)


def _semester(gpa: float, credits: int, semester_id: str = "hk") -> SemesterGPA:
    return SemesterGPA(
        semester_id=semester_id,
        semester_name=semester_id,
        academic_year="2024-2025",
        gpa=gpa,
        total_credits=credits,
        subject_count=1,
        standing=get_academic_standing(gpa),
    )


# -- round_half_up / scales --

class TestRounding:
    def test_ties_round_up_not_to_even(self):
        assert round_half_up(7.125) == 7.13
        assert round(7.125, 2) == 7.12  # built-in round would differ

    def test_integer_rounding(self):
        assert round_half_up(66.5, 0) == 67
        assert round_half_up(33.33, 0) == 33

    def test_negative_values(self):
        assert round_half_up(-0.0625, 3) == -0.062


class TestThresholdScale:
    def test_below_every_threshold_returns_floor(self):
        assert FOUR_POINT_SCALE.lookup(-1) == 0.0
        assert STANDING_SCALE.lookup(-0.5).code == "failing"

    def test_thresholds_are_sorted_ascending(self):
        assert list(FOUR_POINT_SCALE.thresholds) == sorted(FOUR_POINT_SCALE.thresholds)
        assert len(STANDING_SCALE.values) == len(ACADEMIC_STANDINGS)


# -- calculate_subject_average --

class TestSubjectAverage:
    def test_oral_and_final(self):
        assert calculate_subject_average(_grade(oral_score=8, final_score=7)) == 7.25

    def test_all_components(self):
        grade = _grade(
            oral_score=10, fifteen_min_score=8, forty_five_min_score=7, midterm_score=6, final_score=9
        )
        # (10 + 8 + 7*2 + 6*2 + 9*3) / 9 = 71 / 9
        assert calculate_subject_average(grade) == 7.89

    def test_no_components_is_none_not_zero(self):
        assert calculate_subject_average(_grade()) is None

    def test_single_zero_score_is_zero(self):
        assert calculate_subject_average(_grade(oral_score=0)) == 0

    def test_half_up_rounding(self):
        assert calculate_subject_average(_grade(midterm_score=7.125)) == 7.13

    @pytest.mark.parametrize("scores", [
        {"oral_score": 0},
        {"final_score": 10},
        {"oral_score": 10, "final_score": 0},
        {"fifteen_min_score": 3.3, "forty_five_min_score": 9.9, "midterm_score": 0.1},
    ])
    def test_average_stays_in_range(self, scores):
        average = calculate_subject_average(_grade(**scores))
        assert 0 <= average <= 10


# -- calculate_semester_gpa --

class TestSemesterGPA:
    def test_empty(self):
        result = calculate_semester_gpa([], "hk1", "Học kỳ 1", "2024-2025")
        assert result.gpa == 0
        assert result.total_credits == 0
        assert result.subject_count == 0
        assert result.standing.code == "failing"

    def test_credit_weighted_and_ungraded_excluded(self):
        grades = [
            _grade("s1", credits=3, oral_score=8, final_score=7),  # 7.25
            _grade("s2", credits=2, final_score=9),                # 9.0
            _grade("s3", credits=4),                               # ungraded
        ]
        result = calculate_semester_gpa(grades, "hk1", "Học kỳ 1", "2024-2025")
        # (7.25*3 + 9*2) / 5
        assert result.gpa == 7.95
        assert result.total_credits == 5
        assert result.subject_count == 2
        assert result.standing.code == "fair"
        assert result.semester_name == "Học kỳ 1"

    def test_only_ungraded_subjects(self):
        result = calculate_semester_gpa([_grade("s1", credits=3)], "hk1", "Học kỳ 1", "2024-2025")
        assert result.gpa == 0
        assert result.total_credits == 0


# -- calculate_cumulative_gpa --

class TestCumulativeGPA:
    def test_empty(self):
        result = calculate_cumulative_gpa([])
        assert result.gpa == 0
        assert result.total_credits == 0
        assert result.trend == "stable"
        assert result.semesters == []

    def test_credit_weighted_across_semesters(self):
        result = calculate_cumulative_gpa([_semester(7.0, 10), _semester(8.0, 5)])
        assert result.gpa == 7.33
        assert result.total_credits == 15
        assert result.trend == "improving"
        assert result.standing.code == "fair"

    def test_zero_credit_semester_is_excluded(self):
        result = calculate_cumulative_gpa([_semester(8.0, 10), _semester(0, 0)])
        assert result.gpa == 8.0

    def test_all_zero_credits(self):
        result = calculate_cumulative_gpa([_semester(0, 0), _semester(0, 0)])
        assert result.gpa == 0

    def test_single_semester_is_stable(self):
        assert calculate_cumulative_gpa([_semester(9.0, 10)]).trend == "stable"

    def test_trend_uses_last_three_semesters(self):
        semesters = [_semester(9.0, 10), _semester(6.0, 10), _semester(6.1, 10), _semester(6.2, 10)]
        assert calculate_cumulative_gpa(semesters).trend == "stable"

    def test_declining(self):
        semesters = [_semester(8.0, 10), _semester(7.5, 10), _semester(7.0, 10)]
        assert calculate_cumulative_gpa(semesters).trend == "declining"

    def test_small_change_is_stable(self):
        assert calculate_cumulative_gpa([_semester(7.0, 10), _semester(7.3, 10)]).trend == "stable"


# -- standing / scales --

class TestAcademicStanding:
    @pytest.mark.parametrize("gpa,code", [
        (10, "excellent"),
        (9.5, "excellent"),
        (9.0, "excellent"),
        (8.99, "good"),
        (8.0, "good"),
        (6.5, "fair"),
        (5.0, "average"),
        (4.99, "weak"),
        (3.5, "weak"),
        (2.0, "failing"),
        (0, "failing"),
    ])
    def test_tiers(self, gpa, code):
        assert get_academic_standing(gpa).code == code

    def test_labels(self):
        standing = get_academic_standing(9.5)
        assert standing.label_vi == "Xuất sắc"
        assert standing.label_en == "Excellent"
        assert standing.color == "emerald"

    def test_monotonic(self):
        order = [s.code for s in ACADEMIC_STANDINGS]
        previous = 0
        for step in range(100, -1, -1):
            index = order.index(get_academic_standing(step / 10).code)
            assert index >= previous
            previous = index


class TestFourPointScale:
    @pytest.mark.parametrize("gpa,expected", [
        (10, 4.0),
        (9.0, 4.0),
        (8.7, 3.7),
        (8.0, 3.5),
        (7.5, 3.0),
        (6.5, 2.5),
        (5.5, 2.0),
        (5.0, 1.5),
        (4.0, 1.0),
        (3.99, 0.0),
        (0, 0.0),
    ])
    def test_steps(self, gpa, expected):
        assert convert_to_4_point_scale(gpa) == expected


class TestLetterGrade:
    @pytest.mark.parametrize("score,letter", [
        (9.0, "A+"),
        (8.5, "A"),
        (8.0, "A-"),
        (7.25, "B+"),
        (6.5, "B"),
        (5.5, "B-"),
        (5.0, "C+"),
        (4.5, "C"),
        (4.0, "C-"),
        (3.0, "D"),
        (2.9, "F"),
    ])
    def test_steps(self, score, letter):
        assert get_letter_grade_from_score(score) == letter


def test_format_gpa():
    assert format_gpa(7.5) == "7.50"
    assert format_gpa(7.456, 1) == "7.5"


# -- progress / required grade --

class TestProgressToNextStanding:
    def test_top_tier(self):
        progress = get_progress_to_next_standing(9.5)
        assert progress.next_standing is None
        assert progress.points_needed == 0
        assert progress.progress_percent == 100

    def test_halfway_to_excellent(self):
        progress = get_progress_to_next_standing(8.5)
        assert progress.next_standing.code == "excellent"
        assert progress.points_needed == 0.5
        assert progress.progress_percent == 50

    def test_fair_to_good(self):
        progress = get_progress_to_next_standing(7.0)
        assert progress.next_standing.code == "good"
        assert progress.points_needed == 1.0
        assert progress.progress_percent == 33

    def test_start_of_tier(self):
        assert get_progress_to_next_standing(5.0).progress_percent == 0


class TestRequiredGrade:
    def test_no_remaining_weight(self):
        assert calculate_required_grade(6, 60, 7, 0) is None
        assert calculate_required_grade(6, 60, 7, -5) is None

    def test_reachable(self):
        # (7*100 - 6*60) / 40
        assert calculate_required_grade(6, 60, 7, 40) == 8.5

    def test_already_exceeded(self):
        assert calculate_required_grade(9, 60, 5, 40) == 0

    def test_unreachable(self):
        assert calculate_required_grade(3, 80, 9, 20) is None


class TestOverallAverage:
    def setup_method(self):
        self.grades = [
            _grade("s1", credits=3, oral_score=8, final_score=7),  # 7.25
            _grade("s2", credits=1, final_score=9),
            _grade("s3", credits=5),
        ]

    def test_unweighted(self):
        assert calculate_overall_average(self.grades) == pytest.approx(8.125)

    def test_credit_weighted(self):
        result = calculate_overall_average(self.grades, WeightingPolicy.CREDIT_WEIGHTED)
        assert result == pytest.approx(7.6875)

    def test_nothing_graded(self):
        assert calculate_overall_average([_grade()]) is None
