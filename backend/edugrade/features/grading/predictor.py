"""
Grading feature: Grade predictor and early-warning indicators.

- Linear regression over dated scores for the grade trend
- Additive risk score for students likely to underperform
- Final-grade prediction with best/worst case
- Score needed on the final exam to reach a target
"""

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta, timezone

from edugrade.features.grading.gpa_calculator import (
    GRADE_COEFFICIENTS,
    calculate_overall_average,
    calculate_subject_average,
)
from edugrade.features.grading.scales import round_half_up
from edugrade.features.grading.schemas import (
    ComponentScores,
    GradeTrend,
    PerformanceMetrics,
    PredictionResult,
    RequiredFinalScore,
    RiskAssessment,
    RiskFactor,
    ScorePoint,
    SubjectGrade,
    TrendDirection,
    WeightingPolicy,
)

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60
PREDICTION_HORIZON_DAYS = 30
WEEKLY_SLOPE_THRESHOLD = 0.1
STEEP_DECLINE_SLOPE = -0.05  # per day
GOOD_STANDING_GPA = 8.0
DEFAULT_COMPLETED_WEIGHT = 50.0  # % of the course assumed graded in overviews

# Recommendations per risk factor type (two each, in display order)
RECOMMENDATIONS: dict[str, tuple[str, ...]] = {
    "low_performance": (
        "Tham gia lớp phụ đạo hoặc học thêm",
        "Gặp giáo viên để được hỗ trợ",
    ),
    "grade_decline": (
        "Xem lại phương pháp học tập",
        "Lập kế hoạch học tập chi tiết",
    ),
    "missing_assignments": (
        "Hoàn thành các bài tập còn thiếu",
        "Sử dụng lịch nhắc nhở deadline",
    ),
    "attendance": (
        "Cải thiện tỷ lệ đi học",
        "Liên hệ phụ huynh nếu cần hỗ trợ",
    ),
}


def _clamp(value: float, low: float = 0.0, high: float = 10.0) -> float:
    return max(low, min(high, value))


def _fmt_number(value: float) -> str:
    """Render 85.0 as "85" and 8.5 as "8.5" in user-facing messages."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


# ── Trend ────────────────────────────────────────────────

def calculate_grade_trend(history: Iterable[ScorePoint]) -> GradeTrend:
    """Least-squares trend of scores over time (x = days since first score).

    Needs at least 2 points. Predicts the score 30 days after the last one;
    confidence is R² of the fit as a percentage.
    """
    points = sorted(history, key=lambda p: p.date)
    if len(points) < 2:
        return GradeTrend(
            slope=0,
            direction="stable",
            predicted_next_grade=points[-1].score if points else 0,
            confidence=0,
        )

    first = points[0].date
    xs = [(p.date - first).total_seconds() / SECONDS_PER_DAY for p in points]
    ys = [p.score for p in points]

    n = len(points)
    sum_x = sum(xs)
    sum_y = sum(ys)
    sum_xy = sum(x * y for x, y in zip(xs, ys))
    sum_x2 = sum(x * x for x in xs)

    denominator = n * sum_x2 - sum_x * sum_x
    if denominator == 0:
        # All scores share one date: no time axis to fit against.
        logger.debug(f"Trend regression skipped: {n} scores on the same date")
        slope = 0.0
    else:
        slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n

    predicted = _clamp(intercept + slope * (xs[-1] + PREDICTION_HORIZON_DAYS))

    mean_y = sum_y / n
    ss_total = sum((y - mean_y) ** 2 for y in ys)
    ss_residual = sum((y - (intercept + slope * x)) ** 2 for x, y in zip(xs, ys))
    r2 = 1 - ss_residual / ss_total if ss_total > 0 else 0.0
    confidence = int(round_half_up(max(0.0, r2) * 100, 0))

    weekly_slope = slope * 7
    direction: TrendDirection
    if weekly_slope > WEEKLY_SLOPE_THRESHOLD:
        direction = "improving"
    elif weekly_slope < -WEEKLY_SLOPE_THRESHOLD:
        direction = "declining"
    else:
        direction = "stable"

    return GradeTrend(
        slope=round_half_up(slope, 3),
        direction=direction,
        predicted_next_grade=round_half_up(predicted),
        confidence=confidence,
    )


# ── Risk ─────────────────────────────────────────────────

def assess_risk(
    current_gpa: float,
    trend: GradeTrend,
    missing_assignments: int,
    attendance_rate: float,
) -> RiskAssessment:
    """Additive 0-100 risk score from performance, trend, missing work and attendance."""
    factors: list[RiskFactor] = []

    if current_gpa < 5.0:
        factors.append(RiskFactor(
            type="low_performance",
            severity="high",
            description="Điểm trung bình dưới mức đạt yêu cầu",
            weight=35,
        ))
    elif current_gpa < 6.5:
        factors.append(RiskFactor(
            type="low_performance",
            severity="medium",
            description="Điểm trung bình ở mức trung bình",
            weight=20,
        ))

    if trend.direction == "declining":
        steep = trend.slope < STEEP_DECLINE_SLOPE
        factors.append(RiskFactor(
            type="grade_decline",
            severity="high" if steep else "medium",
            description="Điểm số có xu hướng giảm",
            weight=30 if steep else 15,
        ))

    if missing_assignments > 3:
        factors.append(RiskFactor(
            type="missing_assignments",
            severity="high",
            description=f"Thiếu {missing_assignments} bài tập",
            weight=25,
        ))
    elif missing_assignments > 0:
        factors.append(RiskFactor(
            type="missing_assignments",
            severity="low",
            description=f"Thiếu {missing_assignments} bài tập",
            weight=10,
        ))

    if attendance_rate < 80:
        factors.append(RiskFactor(
            type="attendance",
            severity="high",
            description=f"Tỷ lệ đi học chỉ {_fmt_number(attendance_rate)}%",
            weight=20,
        ))
    elif attendance_rate < 90:
        factors.append(RiskFactor(
            type="attendance",
            severity="medium",
            description=f"Tỷ lệ đi học {_fmt_number(attendance_rate)}%",
            weight=10,
        ))

    total_score = min(100, sum(f.weight for f in factors))
    if total_score >= 60:
        risk_level = "critical"
    elif total_score >= 40:
        risk_level = "high"
    elif total_score >= 20:
        risk_level = "medium"
    else:
        risk_level = "low"

    return RiskAssessment(
        risk_level=risk_level,
        risk_score=total_score,
        factors=factors,
        recommendations=_generate_recommendations(factors, current_gpa),
    )


def _generate_recommendations(factors: Sequence[RiskFactor], current_gpa: float) -> list[str]:
    recommendations: list[str] = []
    for factor in factors:
        recommendations.extend(RECOMMENDATIONS[factor.type])

    if current_gpa < 5.0:
        recommendations.append("Cần nỗ lực đặc biệt để đạt điểm đủ qua học kỳ")
    elif current_gpa >= GOOD_STANDING_GPA and not factors:
        recommendations.append("Duy trì phong độ học tập tốt hiện tại")

    # dict keeps first-seen order
    return list(dict.fromkeys(recommendations))


# ── Prediction ───────────────────────────────────────────

def predict_final_grade(
    current_scores: Iterable[SubjectGrade],
    completed_weight: float,
    trend: GradeTrend,
    policy: WeightingPolicy = WeightingPolicy.UNWEIGHTED,
) -> PredictionResult:
    """Project the end-of-course average from the current one and the trend.

    ``completed_weight`` is the percentage of the course already graded; the
    trend only moves the prediction over the part that is still open.
    """
    current_average = calculate_overall_average(current_scores, policy)
    if current_average is None:
        return PredictionResult(
            predicted_grade=0,
            confidence=0,
            best_case=0,
            worst_case=0,
            required_effort="extreme",
        )

    trend_adjustment = trend.slope * PREDICTION_HORIZON_DAYS * ((100 - completed_weight) / 100)
    predicted = _clamp(current_average + trend_adjustment)

    completion_confidence = min(100.0, completed_weight)
    confidence = int(round_half_up(completion_confidence * 0.6 + trend.confidence * 0.4, 0))

    variance = (100 - confidence) / 100 * 2  # at most 2 points either way
    best_case = min(10.0, predicted + variance)
    worst_case = max(0.0, predicted - variance)

    gap = GOOD_STANDING_GPA - predicted
    if gap <= 0:
        required_effort = "minimal"
    elif gap < 1:
        required_effort = "moderate"
    elif gap < 2:
        required_effort = "significant"
    else:
        required_effort = "extreme"

    return PredictionResult(
        predicted_grade=round_half_up(predicted),
        confidence=confidence,
        best_case=round_half_up(best_case),
        worst_case=round_half_up(worst_case),
        required_effort=required_effort,
    )


def calculate_required_final_score(
    component_scores: ComponentScores | dict,
    target_gpa: float,
) -> RequiredFinalScore:
    """Score needed on the final exam (hệ số 3) to reach ``target_gpa``.

    Components that have not been graded yet carry no weight.
    """
    if isinstance(component_scores, dict):
        component_scores = ComponentScores.model_validate(component_scores)

    final_weight = GRADE_COEFFICIENTS["final_score"]
    current_weight = 0
    current_sum = 0.0
    for field, value in component_scores:
        if value is None:
            continue
        coefficient = GRADE_COEFFICIENTS[f"{field}_score"]
        current_weight += coefficient
        current_sum += value * coefficient

    required_sum = target_gpa * (current_weight + final_weight)
    required_final = (required_sum - current_sum) / final_weight
    target = _fmt_number(target_gpa)

    if required_final > 10:
        return RequiredFinalScore(
            required_score=10,
            is_possible=False,
            message=f"Không thể đạt điểm {target} ngay cả khi đạt điểm tối đa ở bài thi cuối kỳ",
        )
    if required_final < 0:
        return RequiredFinalScore(
            required_score=0,
            is_possible=True,
            message=f"Bạn đã chắc chắn đạt điểm {target} hoặc cao hơn",
        )
    return RequiredFinalScore(
        required_score=round_half_up(required_final),
        is_possible=True,
        message=f"Cần đạt ít nhất {required_final:.1f} điểm ở bài thi cuối kỳ",
    )


# ── Overview ─────────────────────────────────────────────

def build_weekly_history(
    grades: Iterable[SubjectGrade],
    now: datetime | None = None,
) -> list[ScorePoint]:
    """Ordinal history: graded subjects one week apart, the last one a week before ``now``.

    Used only when real grading dates are not available.
    """
    now = now or datetime.now(timezone.utc)
    averages = [avg for g in grades if (avg := calculate_subject_average(g)) is not None]
    n = len(averages)
    return [
        ScorePoint(date=now - timedelta(weeks=n - i), score=avg)
        for i, avg in enumerate(averages)
    ]


def get_performance_metrics(
    student_grades: Sequence[SubjectGrade],
    class_average_gpa: float,
    attendance_rate: float = 100,
    missing_assignments: int = 0,
    history: Iterable[ScorePoint] | None = None,
    now: datetime | None = None,
    policy: WeightingPolicy = WeightingPolicy.UNWEIGHTED,
    completed_weight: float = DEFAULT_COMPLETED_WEIGHT,
) -> PerformanceMetrics:
    """Trend, risk, prediction and class comparison for one student.

    Pass ``history`` with real grading dates when known; otherwise a weekly
    history is synthesized from the order of ``student_grades``.
    """
    student_grades = list(student_grades)
    current_average = calculate_overall_average(student_grades, policy)
    if current_average is None:
        current_average = 0.0

    if history is None:
        history = build_weekly_history(student_grades, now)

    trend = calculate_grade_trend(history)
    risk = assess_risk(current_average, trend, missing_assignments, attendance_rate)
    prediction = predict_final_grade(
        student_grades,
        completed_weight,
        trend,
        policy,
    )

    return PerformanceMetrics(
        current_average=current_average,
        trend=trend,
        risk=risk,
        prediction=prediction,
        comparison_to_class_average=round_half_up(current_average - class_average_gpa),
    )
