"""Weighted grade aggregation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

GRADE_LADDER = (
    (90.0, "A"),
    (80.0, "B"),
    (70.0, "C"),
    (60.0, "D"),
)


@dataclass(frozen=True)
class ComponentWeight:
    component_id: int
    max_mark: float
    weight_percentage: float


@dataclass(frozen=True)
class CourseGrade:
    """Aggregate of one student's marks in one course.

    ``overall_percentage`` is measured against the weight of every component
    in the course, so ungraded components count as zero.
    ``graded_weight_percentage`` tells how much of that weight has a mark.
    """

    overall_percentage: float
    letter_grade: str
    total_weighted_percentage: float
    graded_weight_percentage: float
    total_weight_percentage: float


def letter_grade(percentage: float) -> str:
    for threshold, letter in GRADE_LADDER:
        if percentage >= threshold:
            return letter
    return "F"


def weighted_score(mark_obtained: float, max_mark: float, weight_percentage: float) -> float:
    if max_mark <= 0:
        return 0.0
    return mark_obtained / max_mark * weight_percentage


def summarize_course(
    components: Iterable[ComponentWeight],
    marks: Mapping[int, Optional[float]],
) -> CourseGrade:
    """Aggregate ``marks`` (component id -> mark) over ``components``."""

    total_weight = 0.0
    graded_weight = 0.0
    weighted_total = 0.0

    for component in components:
        weight = float(component.weight_percentage)
        total_weight += weight
        mark = marks.get(component.component_id)
        if mark is None:
            continue
        graded_weight += weight
        weighted_total += weighted_score(float(mark), float(component.max_mark), weight)

    overall = weighted_total / total_weight * 100 if total_weight > 0 else 0.0
    overall = round(overall, 2)

    return CourseGrade(
        overall_percentage=overall,
        letter_grade=letter_grade(overall),
        total_weighted_percentage=round(weighted_total, 2),
        graded_weight_percentage=round(graded_weight, 2),
        total_weight_percentage=round(total_weight, 2),
    )
