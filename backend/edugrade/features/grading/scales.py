"""
Grading feature: Fixed threshold tables of the Vietnamese 10-point scale.

Each table is an ascending tuple of (threshold, value) pairs. Lookup returns
the value of the highest threshold that is <= the score (binary search),
or the table floor when the score is below every threshold.
"""

import math
from bisect import bisect_right
from typing import Generic, TypeVar

from edugrade.features.grading.schemas import AcademicStanding

T = TypeVar("T")


def round_half_up(value: float, digits: int = 2) -> float:
    """Round like ``Math.round(x * 10**d) / 10**d`` (ties go up, not to even)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


class ThresholdScale(Generic[T]):
    """Immutable step table: score -> value of the highest threshold reached."""

    def __init__(self, steps: tuple[tuple[float, T], ...], floor: T):
        ordered = tuple(sorted(steps, key=lambda step: step[0]))
        self._thresholds = tuple(threshold for threshold, _ in ordered)
        self._values = tuple(value for _, value in ordered)
        self.floor = floor

    def lookup(self, score: float) -> T:
        index = bisect_right(self._thresholds, score) - 1
        if index < 0:
            return self.floor
        return self._values[index]

    @property
    def thresholds(self) -> tuple[float, ...]:
        return self._thresholds

    @property
    def values(self) -> tuple[T, ...]:
        return self._values


# ── Academic standing (học lực) ──────────────────────────
# Listed best-first; the lowest tier doubles as the floor.

ACADEMIC_STANDINGS: tuple[AcademicStanding, ...] = (
    AcademicStanding(code="excellent", label_vi="Xuất sắc", label_en="Excellent", color="emerald", min_gpa=9.0),
    AcademicStanding(code="good", label_vi="Giỏi", label_en="Good", color="blue", min_gpa=8.0),
    AcademicStanding(code="fair", label_vi="Khá", label_en="Fair", color="cyan", min_gpa=6.5),
    AcademicStanding(code="average", label_vi="Trung bình", label_en="Average", color="amber", min_gpa=5.0),
    AcademicStanding(code="weak", label_vi="Yếu", label_en="Weak", color="orange", min_gpa=3.5),
    AcademicStanding(code="failing", label_vi="Kém", label_en="Failing", color="red", min_gpa=0.0),
)

STANDING_SCALE: ThresholdScale[AcademicStanding] = ThresholdScale(
    tuple((s.min_gpa, s) for s in ACADEMIC_STANDINGS),
    floor=ACADEMIC_STANDINGS[-1],
)

# ── 10-point -> 4.0 scale (international comparison) ─────

FOUR_POINT_SCALE: ThresholdScale[float] = ThresholdScale(
    (
        (9.0, 4.0),
        (8.5, 3.7),
        (8.0, 3.5),
        (7.0, 3.0),
        (6.5, 2.5),
        (5.5, 2.0),
        (5.0, 1.5),
        (4.0, 1.0),
    ),
    floor=0.0,
)

# ── Letter grades ────────────────────────────────────────

LETTER_GRADE_SCALE: ThresholdScale[str] = ThresholdScale(
    (
        (9.0, "A+"),
        (8.5, "A"),
        (8.0, "A-"),
        (7.0, "B+"),
        (6.5, "B"),
        (5.5, "B-"),
        (5.0, "C+"),
        (4.5, "C"),
        (4.0, "C-"),
        (3.0, "D"),
    ),
    floor="F",
)
