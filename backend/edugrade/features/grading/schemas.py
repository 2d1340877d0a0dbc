"""
Grading feature: Schemas for grade records, computed results and API requests.

Field names are snake_case in Python; JSON uses camelCase aliases
(``oralScore``, ``semesterGPA`` ...). Serialize with ``model_dump(by_alias=True)``.
"""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Score = float  # 0-10, Vietnamese scale

TrendDirection = Literal["improving", "stable", "declining"]
CourseStatus = Literal["passed", "failed", "in_progress"]
Language = Literal["vi", "en"]


class GradingModel(BaseModel):
    """Base for all grading value objects (read-only once built)."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class WeightingPolicy(str, Enum):
    """How subject averages are combined into one overall average."""
    UNWEIGHTED = "unweighted"
    CREDIT_WEIGHTED = "credit_weighted"


# ── Raw input ────────────────────────────────────────────

class SubjectGrade(GradingModel):
    """One student's component scores for one subject in one term."""
    subject_id: str
    subject_name: str
    credits: int = Field(1, gt=0)
    oral_score: Score | None = Field(None, ge=0, le=10)              # Điểm miệng (hệ số 1)
    fifteen_min_score: Score | None = Field(None, ge=0, le=10)       # Điểm 15 phút (hệ số 1)
    forty_five_min_score: Score | None = Field(None, ge=0, le=10)    # Điểm 1 tiết (hệ số 2)
    midterm_score: Score | None = Field(None, ge=0, le=10)           # Điểm giữa kỳ (hệ số 2)
    final_score: Score | None = Field(None, ge=0, le=10)             # Điểm cuối kỳ (hệ số 3)


class ComponentScores(GradingModel):
    """Scores already known before the final exam."""
    oral: Score | None = Field(None, ge=0, le=10)
    fifteen_min: Score | None = Field(None, ge=0, le=10)
    forty_five_min: Score | None = Field(None, ge=0, le=10)
    midterm: Score | None = Field(None, ge=0, le=10)


class ScorePoint(GradingModel):
    """A dated score used for trend regression."""
    date: datetime
    score: Score = Field(ge=0, le=10)


class GradeRecord(GradingModel):
    """A single evaluation row as stored by the school (one score, one type)."""
    subject_id: str
    subject_name: str
    evaluation_type: str      # "Miệng", "15 phút", "1 tiết", "Giữa kỳ", "Final", ...
    score: Score = Field(ge=0, le=10)
    semester: str = "HK1"     # HK1 | HK2
    academic_year: str = ""   # e.g. "2024-2025"
    credits: int | None = Field(None, gt=0)
    recorded_at: datetime | None = None


# ── GPA / standing ───────────────────────────────────────

class AcademicStanding(GradingModel):
    """One of the six fixed học lực tiers."""
    code: Literal["excellent", "good", "fair", "average", "weak", "failing"]
    label_vi: str
    label_en: str
    color: str
    min_gpa: float


class SemesterGPA(GradingModel):
    semester_id: str
    semester_name: str
    academic_year: str
    gpa: float = Field(ge=0, le=10)
    total_credits: int = Field(ge=0)
    subject_count: int = Field(ge=0)
    standing: AcademicStanding


class CumulativeGPA(GradingModel):
    gpa: float
    total_credits: int
    semesters: list[SemesterGPA]
    standing: AcademicStanding
    trend: TrendDirection


class StandingProgress(GradingModel):
    next_standing: AcademicStanding | None
    points_needed: float
    progress_percent: int


# ── Prediction / risk ────────────────────────────────────

class GradeTrend(GradingModel):
    slope: float              # score change per day
    direction: TrendDirection
    predicted_next_grade: float
    confidence: int = Field(ge=0, le=100)


class RiskFactor(GradingModel):
    type: Literal["grade_decline", "low_performance", "missing_assignments", "attendance"]
    severity: Literal["low", "medium", "high"]
    description: str
    weight: int


class RiskAssessment(GradingModel):
    risk_level: Literal["low", "medium", "high", "critical"]
    risk_score: int = Field(ge=0, le=100)
    factors: list[RiskFactor]
    recommendations: list[str]


class PredictionResult(GradingModel):
    predicted_grade: float
    confidence: int
    best_case: float
    worst_case: float
    required_effort: Literal["minimal", "moderate", "significant", "extreme"]


class PerformanceMetrics(GradingModel):
    current_average: float
    trend: GradeTrend
    risk: RiskAssessment
    prediction: PredictionResult
    comparison_to_class_average: float   # positive = above class average


class RequiredFinalScore(GradingModel):
    required_score: float
    is_possible: bool
    message: str


# ── Transcript ───────────────────────────────────────────

class TranscriptCourse(GradingModel):
    course_id: str
    course_code: str = ""
    course_name: str
    credits: int
    oral_score: Score | None = None
    fifteen_min_score: Score | None = None
    forty_five_min_score: Score | None = None
    midterm_score: Score | None = None
    final_score: Score | None = None
    average_score: float | None
    letter_grade: str         # A+ ... F, "N/A" when ungraded
    status: CourseStatus


class TranscriptSemester(GradingModel):
    semester_id: str
    semester_name: str
    academic_year: str
    start_date: str = ""
    end_date: str = ""
    courses: list[TranscriptCourse]
    semester_gpa: float = Field(alias="semesterGPA")
    semester_credits: int
    semester_credits_earned: int
    class_rank: int | None = None
    class_size: int | None = None


class StudentInfo(GradingModel):
    student_id: str
    student_code: str = ""
    full_name: str
    date_of_birth: str = ""
    class_name: str = ""
    enrollment_date: str = ""


class SemesterInput(GradingModel):
    """Raw grades of one semester, as handed to the transcript builder."""
    semester_id: str
    semester_name: str
    academic_year: str
    start_date: str = ""
    end_date: str = ""
    grades: list[SubjectGrade]
    class_rank: int | None = Field(None, ge=1)
    class_size: int | None = Field(None, ge=1)


class TranscriptOptions(GradingModel):
    include_pending: bool = False
    include_ranking: bool = True
    language: Language = "vi"


class StudentTranscript(GradingModel):
    student_id: str
    student_code: str
    full_name: str
    date_of_birth: str
    class_name: str
    enrollment_date: str
    semesters: list[TranscriptSemester]
    cumulative_gpa: float = Field(alias="cumulativeGPA")
    cumulative_gpa4: float = Field(alias="cumulativeGPA4")   # 4.0 scale
    total_credits: int
    total_credits_earned: int
    academic_standing: str
    percentile_rank: int | None = None
    generated_at: str


class StudentGPA(GradingModel):
    student_id: str
    gpa: float = Field(ge=0, le=10)


class ClassRanking(GradingModel):
    rank: int
    percentile: int


# ── API requests ─────────────────────────────────────────

class SemesterGPARequest(GradingModel):
    semester_id: str
    semester_name: str
    academic_year: str
    grades: list[SubjectGrade]


class CumulativeGPARequest(GradingModel):
    semesters: list[SemesterGPA]


class StandingRequest(GradingModel):
    gpa: float = Field(ge=0, le=10)


class RequiredGradeRequest(GradingModel):
    current_average: Score = Field(ge=0, le=10)
    current_weight: float = Field(ge=0)
    target_gpa: Score = Field(ge=0, le=10)
    remaining_weight: float


class RequiredFinalRequest(GradingModel):
    component_scores: ComponentScores
    target_gpa: Score = Field(ge=0, le=10)


class TrendRequest(GradingModel):
    history: list[ScorePoint]


class RiskRequest(GradingModel):
    gpa: float = Field(ge=0, le=10)
    trend: GradeTrend
    missing_count: int = Field(0, ge=0)
    attendance_rate: float = Field(100, ge=0, le=100)


class PredictionRequest(GradingModel):
    scores: list[SubjectGrade]
    completed_weight_pct: float = Field(ge=0, le=100)
    trend: GradeTrend
    policy: WeightingPolicy = WeightingPolicy.UNWEIGHTED


class PerformanceRequest(GradingModel):
    grades: list[SubjectGrade]
    class_average_gpa: float = Field(ge=0, le=10)
    attendance_rate: float = Field(100, ge=0, le=100)
    missing_count: int = Field(0, ge=0)
    history: list[ScorePoint] | None = None
    policy: WeightingPolicy = WeightingPolicy.UNWEIGHTED


class TranscriptRequest(GradingModel):
    student_info: StudentInfo
    semesters: list[SemesterInput]
    options: TranscriptOptions | None = None


class RankingRequest(GradingModel):
    students: list[StudentGPA]


class GroupRecordsRequest(GradingModel):
    records: list[GradeRecord]
