"""
Grading feature: Student transcripts (học bạ).

Builds per-semester and cumulative transcripts from raw subject grades,
ranks a class by GPA, and renders transcripts for display or export.
"""

from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

from edugrade.features.grading.gpa_calculator import (
    calculate_cumulative_gpa,
    calculate_semester_gpa,
    calculate_subject_average,
    convert_to_4_point_scale,
    get_letter_grade_from_score,
)
from edugrade.features.grading.scales import round_half_up
from edugrade.features.grading.schemas import (
    ClassRanking,
    CourseStatus,
    Language,
    SemesterGPA,
    SemesterInput,
    StudentGPA,
    StudentInfo,
    StudentTranscript,
    SubjectGrade,
    TranscriptCourse,
    TranscriptOptions,
    TranscriptSemester,
)

PASSING_SCORE = 5.0
UNGRADED_LETTER = "N/A"

SUMMARY_LABELS: dict[str, dict[str, str]] = {
    "vi": {
        "title": "HỌC BẠ",
        "student_code": "Mã học sinh",
        "class_name": "Lớp",
        "summary": "TỔNG KẾT",
        "cumulative_gpa": "Điểm trung bình tích lũy",
        "gpa4": "Điểm GPA (thang 4.0)",
        "credits": "Tổng số tín chỉ",
        "standing": "Học lực",
        "details": "CHI TIẾT THEO HỌC KỲ",
        "semester_gpa": "Điểm trung bình",
        "rank": "Xếp hạng",
        "ungraded": "Chưa có",
    },
    "en": {
        "title": "TRANSCRIPT",
        "student_code": "Student code",
        "class_name": "Class",
        "summary": "SUMMARY",
        "cumulative_gpa": "Cumulative GPA",
        "gpa4": "GPA (4.0 scale)",
        "credits": "Total credits",
        "standing": "Academic standing",
        "details": "SEMESTER DETAILS",
        "semester_gpa": "Semester GPA",
        "rank": "Rank",
        "ungraded": "Pending",
    },
}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def build_transcript_course(grade: SubjectGrade) -> TranscriptCourse:
    """Attach the computed average, letter grade and pass status to a subject grade."""
    average = calculate_subject_average(grade)

    status: CourseStatus = "in_progress"
    letter = UNGRADED_LETTER
    if average is not None:
        status = "passed" if average >= PASSING_SCORE else "failed"
        letter = get_letter_grade_from_score(average)

    return TranscriptCourse(
        course_id=grade.subject_id,
        course_name=grade.subject_name,
        credits=grade.credits,
        oral_score=grade.oral_score,
        fifteen_min_score=grade.fifteen_min_score,
        forty_five_min_score=grade.forty_five_min_score,
        midterm_score=grade.midterm_score,
        final_score=grade.final_score,
        average_score=average,
        letter_grade=letter,
        status=status,
    )


def generate_transcript(
    student_info: StudentInfo,
    semester_data: Iterable[SemesterInput],
    options: TranscriptOptions | None = None,
) -> StudentTranscript:
    """Assemble the full transcript of one student.

    Without ``include_pending`` ungraded subjects are dropped before anything
    is computed. Class rank and size are copied only with ``include_ranking``.
    """
    options = options or TranscriptOptions()

    semesters: list[TranscriptSemester] = []
    semester_gpas: list[SemesterGPA] = []
    total_credits = 0
    total_credits_earned = 0

    for semester in semester_data:
        grades = semester.grades
        if not options.include_pending:
            grades = [g for g in grades if calculate_subject_average(g) is not None]

        courses = [build_transcript_course(g) for g in grades]
        semester_gpa = calculate_semester_gpa(
            grades,
            semester.semester_id,
            semester.semester_name,
            semester.academic_year,
        )
        semester_gpas.append(semester_gpa)

        credits = sum(c.credits for c in courses)
        credits_earned = sum(c.credits for c in courses if c.status == "passed")
        total_credits += credits
        total_credits_earned += credits_earned

        semesters.append(TranscriptSemester(
            semester_id=semester.semester_id,
            semester_name=semester.semester_name,
            academic_year=semester.academic_year,
            start_date=semester.start_date,
            end_date=semester.end_date,
            courses=courses,
            semester_gpa=semester_gpa.gpa,
            semester_credits=credits,
            semester_credits_earned=credits_earned,
            class_rank=semester.class_rank if options.include_ranking else None,
            class_size=semester.class_size if options.include_ranking else None,
        ))

    cumulative = calculate_cumulative_gpa(semester_gpas)
    standing = cumulative.standing
    standing_label = standing.label_en if options.language == "en" else standing.label_vi

    return StudentTranscript(
        student_id=student_info.student_id,
        student_code=student_info.student_code,
        full_name=student_info.full_name,
        date_of_birth=student_info.date_of_birth,
        class_name=student_info.class_name,
        enrollment_date=student_info.enrollment_date,
        semesters=semesters,
        cumulative_gpa=cumulative.gpa,
        cumulative_gpa4=convert_to_4_point_scale(cumulative.gpa),
        total_credits=total_credits,
        total_credits_earned=total_credits_earned,
        academic_standing=standing_label,
        generated_at=_now_iso(),
    )


def calculate_class_rankings(student_gpas: Sequence[StudentGPA]) -> dict[str, ClassRanking]:
    """Rank students by GPA, best first.

    Equal GPAs share the rank of the first student of the tie (1, 1, 3).
    Percentile follows the position in the sorted list, so tied students
    can differ by a few points.
    """
    ordered = sorted(student_gpas, key=lambda s: s.gpa, reverse=True)
    total = len(ordered)

    rankings: dict[str, ClassRanking] = {}
    current_rank = 1
    previous_gpa: float | None = None
    for index, student in enumerate(ordered):
        if student.gpa != previous_gpa:
            current_rank = index + 1
        percentile = int(round_half_up((total - index) / total * 100, 0))
        rankings[student.student_id] = ClassRanking(rank=current_rank, percentile=percentile)
        previous_gpa = student.gpa

    return rankings


def format_transcript_summary(transcript: StudentTranscript, language: Language = "vi") -> str:
    """Plain-text transcript for display."""
    labels = SUMMARY_LABELS[language]
    lines = [
        f"{labels['title']} - {transcript.full_name}",
        f"{labels['student_code']}: {transcript.student_code}",
        f"{labels['class_name']}: {transcript.class_name}",
        "",
        labels["summary"],
        f"- {labels['cumulative_gpa']}: {transcript.cumulative_gpa:.2f}",
        f"- {labels['gpa4']}: {transcript.cumulative_gpa4:.2f}",
        f"- {labels['credits']}: {transcript.total_credits_earned}/{transcript.total_credits}",
        f"- {labels['standing']}: {transcript.academic_standing}",
        "",
        labels["details"],
    ]

    for semester in transcript.semesters:
        lines.append(f"\n{semester.semester_name} - {semester.academic_year}")
        lines.append(f"{labels['semester_gpa']}: {semester.semester_gpa:.2f}")
        if semester.class_rank and semester.class_size:
            lines.append(f"{labels['rank']}: {semester.class_rank}/{semester.class_size}")

        for course in semester.courses:
            score = f"{course.average_score:.1f}" if course.average_score is not None else labels["ungraded"]
            lines.append(f"  • {course.course_name}: {score} ({course.letter_grade})")

    return "\n".join(lines)


def get_transcript_for_export(transcript: StudentTranscript) -> dict:
    """Export shape consumed by the PDF/CSV renderers."""
    return {
        "header": {
            "studentName": transcript.full_name,
            "studentCode": transcript.student_code,
            "className": transcript.class_name,
            "dateOfBirth": transcript.date_of_birth,
            "enrollmentDate": transcript.enrollment_date,
        },
        "summary": {
            "cumulativeGPA": transcript.cumulative_gpa,
            "cumulativeGPA4": transcript.cumulative_gpa4,
            "totalCredits": transcript.total_credits,
            "creditsEarned": transcript.total_credits_earned,
            "academicStanding": transcript.academic_standing,
        },
        "semesters": [
            {
                "name": f"{semester.semester_name} - {semester.academic_year}",
                "gpa": semester.semester_gpa,
                "courses": [
                    {
                        "name": course.course_name,
                        "credits": course.credits,
                        "score": course.average_score,
                        "grade": course.letter_grade,
                    }
                    for course in semester.courses
                ],
            }
            for semester in transcript.semesters
        ],
    }
