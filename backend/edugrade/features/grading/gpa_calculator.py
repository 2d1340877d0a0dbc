"""
Grading feature: Vietnamese GPA calculator.

Implements the 10-point grading scheme used in Vietnamese schools:
  - Subject average from component scores with fixed coefficients
    (miệng 1, 15 phút 1, 1 tiết 2, giữa kỳ 2, cuối kỳ 3)
  - Semester GPA (credit-weighted) and cumulative GPA with a trend
  - Academic standing (học lực), letter grades and 4.0-scale conversion

All functions are pure: scores are expected to be validated to [0, 10]
by the caller (see schemas). Expected edge cases return sentinels
(None / 0), never raise.
"""

from collections.abc import Iterable, Sequence

from edugrade.features.grading.scales import (
    ACADEMIC_STANDINGS,
    FOUR_POINT_SCALE,
    LETTER_GRADE_SCALE,
    STANDING_SCALE,
    round_half_up,
)
from edugrade.features.grading.schemas import (
    AcademicStanding,
    CumulativeGPA,
    SemesterGPA,
    StandingProgress,
    SubjectGrade,
    TrendDirection,
    WeightingPolicy,
)

# SubjectGrade field -> coefficient (hệ số)
GRADE_COEFFICIENTS: dict[str, int] = {
    "oral_score": 1,
    "fifteen_min_score": 1,
    "forty_five_min_score": 2,
    "midterm_score": 2,
    "final_score": 3,
}

# First-vs-last GPA difference (over the last 3 semesters) that counts as a trend
TREND_THRESHOLD = 0.3
TREND_WINDOW = 3


def calculate_subject_average(grade: SubjectGrade) -> float | None:
    """Coefficient-weighted mean of the components that are present.

    Returns None when no component has been graded yet; callers must not
    treat that as a zero.
    """
    weighted_sum = 0.0
    total_weight = 0
    for field, coefficient in GRADE_COEFFICIENTS.items():
        value = getattr(grade, field)
        if value is None:
            continue
        weighted_sum += value * coefficient
        total_weight += coefficient

    if total_weight == 0:
        return None
    return round_half_up(weighted_sum / total_weight)


def calculate_semester_gpa(
    grades: Iterable[SubjectGrade],
    semester_id: str,
    semester_name: str,
    academic_year: str,
) -> SemesterGPA:
    """Credit-weighted GPA over the graded subjects of one semester.

    Ungraded subjects are left out entirely: they add neither points nor credits.
    """
    graded = [(g, avg) for g in grades if (avg := calculate_subject_average(g)) is not None]

    if not graded:
        return SemesterGPA(
            semester_id=semester_id,
            semester_name=semester_name,
            academic_year=academic_year,
            gpa=0,
            total_credits=0,
            subject_count=0,
            standing=get_academic_standing(0),
        )

    total_credits = sum(g.credits for g, _ in graded)
    weighted_sum = sum(avg * g.credits for g, avg in graded)
    gpa = round_half_up(weighted_sum / total_credits)

    return SemesterGPA(
        semester_id=semester_id,
        semester_name=semester_name,
        academic_year=academic_year,
        gpa=gpa,
        total_credits=total_credits,
        subject_count=len(graded),
        standing=get_academic_standing(gpa),
    )


def calculate_cumulative_gpa(semesters: Sequence[SemesterGPA]) -> CumulativeGPA:
    """Credit-weighted GPA across semesters plus the recent trend."""
    semesters = list(semesters)
    if not semesters:
        return CumulativeGPA(
            gpa=0,
            total_credits=0,
            semesters=[],
            standing=get_academic_standing(0),
            trend="stable",
        )

    total_credits = sum(s.total_credits for s in semesters)
    weighted_sum = sum(s.gpa * s.total_credits for s in semesters)
    gpa = round_half_up(weighted_sum / total_credits) if total_credits > 0 else 0.0

    return CumulativeGPA(
        gpa=gpa,
        total_credits=total_credits,
        semesters=semesters,
        standing=get_academic_standing(gpa),
        trend=_semester_trend(semesters),
    )


def _semester_trend(semesters: Sequence[SemesterGPA]) -> TrendDirection:
    recent = semesters[-TREND_WINDOW:]
    if len(recent) < 2:
        return "stable"

    difference = recent[-1].gpa - recent[0].gpa
    if difference > TREND_THRESHOLD:
        return "improving"
    if difference < -TREND_THRESHOLD:
        return "declining"
    return "stable"


def get_academic_standing(gpa: float) -> AcademicStanding:
    """Highest tier whose minimum GPA is reached; "Kém" is the fallback."""
    return STANDING_SCALE.lookup(gpa)


def convert_to_4_point_scale(gpa10: float) -> float:
    """Convert a 10-point GPA to the 4.0 scale (step table, not linear)."""
    return FOUR_POINT_SCALE.lookup(gpa10)


def get_letter_grade_from_score(score: float) -> str:
    return LETTER_GRADE_SCALE.lookup(score)


def format_gpa(gpa: float, decimals: int = 2) -> str:
    return f"{gpa:.{decimals}f}"


def get_progress_to_next_standing(gpa: float) -> StandingProgress:
    """How far the GPA has moved from the current tier towards the next one."""
    current = get_academic_standing(gpa)
    index = ACADEMIC_STANDINGS.index(current)

    if index == 0:
        return StandingProgress(next_standing=None, points_needed=0, progress_percent=100)

    next_standing = ACADEMIC_STANDINGS[index - 1]
    points_needed = round_half_up(next_standing.min_gpa - gpa)

    span = next_standing.min_gpa - current.min_gpa
    progress = int(round_half_up((gpa - current.min_gpa) / span * 100, 0))
    progress_percent = max(0, min(100, progress))

    return StandingProgress(
        next_standing=next_standing,
        points_needed=points_needed,
        progress_percent=progress_percent,
    )


def calculate_required_grade(
    current_average: float,
    current_weight: float,
    target_gpa: float,
    remaining_weight: float,
) -> float | None:
    """Average needed on the remaining work to finish at ``target_gpa``.

    Returns None when there is no remaining work or the target needs more than 10,
    and 0 when the target is already secured.
    """
    if remaining_weight <= 0:
        return None

    total_weight = current_weight + remaining_weight
    needed = (target_gpa * total_weight - current_average * current_weight) / remaining_weight

    if needed > 10:
        return None
    if needed < 0:
        return 0
    return round_half_up(needed)


def calculate_overall_average(
    grades: Iterable[SubjectGrade],
    policy: WeightingPolicy = WeightingPolicy.UNWEIGHTED,
) -> float | None:
    """Mean of the defined subject averages, or None if nothing is graded.

    UNWEIGHTED gives every subject the same weight; CREDIT_WEIGHTED uses credits
    (same weighting as the semester GPA, but without rounding).
    """
    graded = [(g, avg) for g in grades if (avg := calculate_subject_average(g)) is not None]
    if not graded:
        return None

    if policy == WeightingPolicy.CREDIT_WEIGHTED:
        total_credits = sum(g.credits for g, _ in graded)
        return sum(avg * g.credits for g, avg in graded) / total_credits
    return sum(avg for _, avg in graded) / len(graded)
