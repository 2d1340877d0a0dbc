"""
Grading feature: API routes for GPA, prediction, transcript and ranking calculations.

Request bodies are validated by the schemas (scores in [0, 10], positive
credits, rates in [0, 100]); invalid payloads never reach the calculators.
"""

from fastapi import APIRouter, Depends

from edugrade.core.dependencies import get_grading_service
from edugrade.core.exceptions import GradingInputError, app_error_to_http
from edugrade.features.grading.schemas import (
    CumulativeGPARequest,
    GroupRecordsRequest,
    PerformanceRequest,
    PredictionRequest,
    RankingRequest,
    RequiredFinalRequest,
    RequiredGradeRequest,
    RiskRequest,
    SemesterGPARequest,
    StandingRequest,
    SubjectGrade,
    TranscriptRequest,
    TrendRequest,
)
from edugrade.features.grading.service import GradingService

router = APIRouter()


# ── GPA ──────────────────────────────────────────────────

@router.post("/subject-average")
def subject_average(
    data: SubjectGrade,
    service: GradingService = Depends(get_grading_service),
):
    """Điểm trung bình môn theo hệ số (null nếu chưa có điểm)."""
    return {"data": service.subject_average(data)}


@router.post("/semester-gpa")
def semester_gpa(
    data: SemesterGPARequest,
    service: GradingService = Depends(get_grading_service),
):
    """Điểm trung bình học kỳ (trọng số tín chỉ)."""
    result = service.semester_gpa(data.grades, data.semester_id, data.semester_name, data.academic_year)
    return {"data": result.model_dump(by_alias=True)}


@router.post("/cumulative-gpa")
def cumulative_gpa(
    data: CumulativeGPARequest,
    service: GradingService = Depends(get_grading_service),
):
    """Điểm trung bình tích lũy và xu hướng."""
    return {"data": service.cumulative_gpa(data.semesters).model_dump(by_alias=True)}


@router.post("/standing")
def standing(
    data: StandingRequest,
    service: GradingService = Depends(get_grading_service),
):
    """Học lực, thang 4.0, điểm chữ và tiến độ lên mức tiếp theo."""
    return {"data": service.standing(data.gpa)}


@router.post("/required-grade")
def required_grade(
    data: RequiredGradeRequest,
    service: GradingService = Depends(get_grading_service),
):
    """Điểm cần đạt ở phần còn lại (null nếu không thể đạt)."""
    needed = service.required_grade(
        data.current_average, data.current_weight, data.target_gpa, data.remaining_weight
    )
    return {"data": {"requiredGrade": needed}}


# ── Prediction ───────────────────────────────────────────

@router.post("/required-final")
def required_final(
    data: RequiredFinalRequest,
    service: GradingService = Depends(get_grading_service),
):
    """Điểm thi cuối kỳ cần đạt để đạt mục tiêu."""
    return {"data": service.required_final(data.component_scores, data.target_gpa).model_dump(by_alias=True)}


@router.post("/trend")
def trend(
    data: TrendRequest,
    service: GradingService = Depends(get_grading_service),
):
    """Xu hướng điểm (hồi quy tuyến tính)."""
    try:
        return {"data": service.trend(data.history).model_dump(by_alias=True)}
    except GradingInputError as e:
        raise app_error_to_http(e, status_code=422)


@router.post("/risk")
def risk(
    data: RiskRequest,
    service: GradingService = Depends(get_grading_service),
):
    """Đánh giá nguy cơ học tập."""
    result = service.risk(data.gpa, data.trend, data.missing_count, data.attendance_rate)
    return {"data": result.model_dump(by_alias=True)}


@router.post("/prediction")
def prediction(
    data: PredictionRequest,
    service: GradingService = Depends(get_grading_service),
):
    """Dự đoán điểm cuối khóa."""
    result = service.prediction(data.scores, data.completed_weight_pct, data.trend, data.policy)
    return {"data": result.model_dump(by_alias=True)}


@router.post("/performance")
def performance(
    data: PerformanceRequest,
    service: GradingService = Depends(get_grading_service),
):
    """Tổng quan: xu hướng, nguy cơ, dự đoán và so sánh với lớp."""
    try:
        result = service.performance(
            data.grades,
            data.class_average_gpa,
            data.attendance_rate,
            data.missing_count,
            data.history,
            data.policy,
        )
        return {"data": result.model_dump(by_alias=True)}
    except GradingInputError as e:
        raise app_error_to_http(e, status_code=422)


# ── Transcript ───────────────────────────────────────────

@router.post("/transcript")
def generate_transcript(
    data: TranscriptRequest,
    service: GradingService = Depends(get_grading_service),
):
    """Học bạ đầy đủ của một học sinh."""
    result = service.transcript(data.student_info, data.semesters, data.options)
    return {"data": result.model_dump(by_alias=True)}


@router.post("/transcript/summary")
def transcript_summary(
    data: TranscriptRequest,
    service: GradingService = Depends(get_grading_service),
):
    """Học bạ dạng văn bản."""
    return {"data": service.transcript_summary(data.student_info, data.semesters, data.options)}


@router.post("/transcript/export")
def transcript_export(
    data: TranscriptRequest,
    service: GradingService = Depends(get_grading_service),
):
    """Học bạ theo định dạng xuất PDF/CSV."""
    return {"data": service.transcript_export(data.student_info, data.semesters, data.options)}


@router.post("/rankings")
def rankings(
    data: RankingRequest,
    service: GradingService = Depends(get_grading_service),
):
    """Xếp hạng lớp theo điểm trung bình."""
    try:
        result = service.rankings(data.students)
        return {"data": {sid: r.model_dump(by_alias=True) for sid, r in result.items()}}
    except GradingInputError as e:
        raise app_error_to_http(e, status_code=400)


# ── Records ──────────────────────────────────────────────

@router.post("/records/group")
def group_records(
    data: GroupRecordsRequest,
    service: GradingService = Depends(get_grading_service),
):
    """Gộp các dòng điểm thô thành điểm môn theo học kỳ."""
    grouped = service.group_records(data.records)
    return {"data": [s.model_dump(by_alias=True) for s in grouped]}


@router.post("/records/trend")
def records_trend(
    data: GroupRecordsRequest,
    service: GradingService = Depends(get_grading_service),
):
    """Xu hướng điểm theo ngày chấm của các dòng điểm thô."""
    try:
        return {"data": service.records_trend(data.records).model_dump(by_alias=True)}
    except GradingInputError as e:
        raise app_error_to_http(e, status_code=422)
