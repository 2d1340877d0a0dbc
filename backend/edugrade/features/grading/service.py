"""
Grading feature: Service layer between the API and the pure calculators.

The calculators trust their input; this layer receives already-validated
request models, rejects the few cases the schemas cannot express, logs the
work done and returns result models.
"""

import logging

from edugrade.config import Settings
from edugrade.core.exceptions import GradingInputError
from edugrade.features.grading import gpa_calculator, predictor, records, transcript
from edugrade.features.grading.schemas import (
    ClassRanking,
    ComponentScores,
    CumulativeGPA,
    GradeRecord,
    GradeTrend,
    PerformanceMetrics,
    PredictionResult,
    RequiredFinalScore,
    RiskAssessment,
    ScorePoint,
    SemesterGPA,
    SemesterInput,
    StudentGPA,
    StudentInfo,
    StudentTranscript,
    SubjectGrade,
    TranscriptOptions,
    WeightingPolicy,
)

logger = logging.getLogger(__name__)


class GradingService:
    """Entry point used by the router for every grading computation."""

    def __init__(self, settings: Settings):
        self.settings = settings

    # ── GPA ──────────────────────────────────────────────

    def subject_average(self, grade: SubjectGrade) -> dict:
        average = gpa_calculator.calculate_subject_average(grade)
        letter = gpa_calculator.get_letter_grade_from_score(average) if average is not None else None
        return {"subjectId": grade.subject_id, "average": average, "letterGrade": letter}

    def semester_gpa(
        self,
        grades: list[SubjectGrade],
        semester_id: str,
        semester_name: str,
        academic_year: str,
    ) -> SemesterGPA:
        result = gpa_calculator.calculate_semester_gpa(grades, semester_id, semester_name, academic_year)
        logger.info(
            f"Semester GPA {semester_id}: {result.gpa} over {result.subject_count}/{len(grades)} graded subjects"
        )
        return result

    def cumulative_gpa(self, semesters: list[SemesterGPA]) -> CumulativeGPA:
        result = gpa_calculator.calculate_cumulative_gpa(semesters)
        logger.info(f"Cumulative GPA: {result.gpa} over {len(semesters)} semesters, trend={result.trend}")
        return result

    def standing(self, gpa: float) -> dict:
        standing = gpa_calculator.get_academic_standing(gpa)
        progress = gpa_calculator.get_progress_to_next_standing(gpa)
        return {
            "gpa": gpa,
            "formatted": gpa_calculator.format_gpa(gpa),
            "gpa4": gpa_calculator.convert_to_4_point_scale(gpa),
            "letterGrade": gpa_calculator.get_letter_grade_from_score(gpa),
            "standing": standing.model_dump(by_alias=True),
            "progress": progress.model_dump(by_alias=True),
        }

    def required_grade(
        self,
        current_average: float,
        current_weight: float,
        target_gpa: float,
        remaining_weight: float,
    ) -> float | None:
        return gpa_calculator.calculate_required_grade(
            current_average, current_weight, target_gpa, remaining_weight
        )

    # ── Prediction ───────────────────────────────────────

    def required_final(self, component_scores: ComponentScores, target_gpa: float) -> RequiredFinalScore:
        return predictor.calculate_required_final_score(component_scores, target_gpa)

    def trend(self, history: list[ScorePoint]) -> GradeTrend:
        try:
            return predictor.calculate_grade_trend(history)
        except TypeError as e:
            # datetime ordering fails when naive and timezone-aware dates are mixed
            logger.warning(f"Rejected score history: {e}")
            raise GradingInputError(
                "Ngày chấm điểm không thống nhất",
                detail="Tất cả các mốc thời gian phải cùng có (hoặc cùng không có) múi giờ.",
            )

    def risk(
        self,
        gpa: float,
        trend: GradeTrend,
        missing_count: int,
        attendance_rate: float,
    ) -> RiskAssessment:
        result = predictor.assess_risk(gpa, trend, missing_count, attendance_rate)
        logger.info(f"Risk assessment: level={result.risk_level} score={result.risk_score}")
        return result

    def prediction(
        self,
        scores: list[SubjectGrade],
        completed_weight_pct: float,
        trend: GradeTrend,
        policy: WeightingPolicy,
    ) -> PredictionResult:
        return predictor.predict_final_grade(scores, completed_weight_pct, trend, policy)

    def performance(
        self,
        grades: list[SubjectGrade],
        class_average_gpa: float,
        attendance_rate: float,
        missing_count: int,
        history: list[ScorePoint] | None,
        policy: WeightingPolicy,
    ) -> PerformanceMetrics:
        if history is None:
            logger.info(f"No grading dates supplied, using weekly history for {len(grades)} subjects")
        else:
            # validate ordering up front so the error is reported as bad input
            self.trend(history)
        return predictor.get_performance_metrics(
            grades,
            class_average_gpa,
            attendance_rate,
            missing_count,
            history=history,
            policy=policy,
            completed_weight=self.settings.PREDICTION_COMPLETED_WEIGHT,
        )

    # ── Transcript ───────────────────────────────────────

    def transcript(
        self,
        student_info: StudentInfo,
        semesters: list[SemesterInput],
        options: TranscriptOptions | None = None,
    ) -> StudentTranscript:
        if options is None:
            options = TranscriptOptions(language=self.settings.TRANSCRIPT_DEFAULT_LANGUAGE)
        result = transcript.generate_transcript(student_info, semesters, options)
        logger.info(
            f"Transcript for {student_info.student_id}: {len(result.semesters)} semesters, "
            f"GPA {result.cumulative_gpa}, {result.total_credits_earned}/{result.total_credits} credits"
        )
        return result

    def transcript_summary(
        self,
        student_info: StudentInfo,
        semesters: list[SemesterInput],
        options: TranscriptOptions | None = None,
    ) -> str:
        built = self.transcript(student_info, semesters, options)
        language = options.language if options else self.settings.TRANSCRIPT_DEFAULT_LANGUAGE
        return transcript.format_transcript_summary(built, language)

    def transcript_export(
        self,
        student_info: StudentInfo,
        semesters: list[SemesterInput],
        options: TranscriptOptions | None = None,
    ) -> dict:
        return transcript.get_transcript_for_export(self.transcript(student_info, semesters, options))

    def rankings(self, students: list[StudentGPA]) -> dict[str, ClassRanking]:
        ids = [s.student_id for s in students]
        if len(set(ids)) != len(ids):
            logger.warning("Rejected ranking request with duplicate student ids")
            raise GradingInputError("Mã học sinh bị trùng", detail="Mỗi học sinh chỉ được xuất hiện một lần.")

        return transcript.calculate_class_rankings(students)

    # ── Records ──────────────────────────────────────────

    def group_records(self, rows: list[GradeRecord]) -> list[SemesterInput]:
        grouped = records.group_grade_records(rows)
        logger.info(f"Grouped {len(rows)} grade records into {len(grouped)} semesters")
        return grouped

    def records_trend(self, rows: list[GradeRecord]) -> GradeTrend:
        history = records.build_score_history(rows)
        logger.info(f"Trend from {len(history)}/{len(rows)} dated grade records")
        return self.trend(history)
