"""Grade helpers on the 0.00-4.00 numeric scale."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from .conf import lms_setting

MIN_GRADE = Decimal("0.00")
MAX_GRADE = Decimal("4.00")
GRADE_LABELS = ["A", "B", "C", "D", "F"]

# Lower bound of each letter bucket, highest first.
LETTER_THRESHOLDS = [
    ("A", Decimal("3.7")),
    ("B", Decimal("2.7")),
    ("C", Decimal("1.7")),
    ("D", Decimal("0.7")),
]

TWO_PLACES = Decimal("0.01")


def to_decimal(value) -> Decimal | None:
    if value is None or value == "":
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def letter_grade(numeric) -> str | None:
    grade = to_decimal(numeric)
    if grade is None:
        return None
    for letter, threshold in LETTER_THRESHOLDS:
        if grade >= threshold:
            return letter
    return "F"


def is_valid_grade(numeric) -> bool:
    grade = to_decimal(numeric)
    return grade is not None and MIN_GRADE <= grade <= MAX_GRADE


def default_completion_grade() -> Decimal:
    return to_decimal(lms_setting("DEFAULT_COMPLETION_GRADE"))


def counts_toward_gpa(enrollment) -> bool:
    from .models import EnrollmentStatus

    return enrollment.status != EnrollmentStatus.DROPPED and enrollment.numeric_grade is not None


def compute_gpa(enrollments) -> Decimal:
    """Plain mean of graded, non-dropped enrollments (not credit-weighted)."""

    grades = [to_decimal(e.numeric_grade) for e in enrollments if counts_toward_gpa(e)]
    if not grades:
        return Decimal("0.00")
    mean = sum(grades, Decimal("0")) / len(grades)
    return mean.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def grade_distribution(grades) -> list[int]:
    """Count grades per A-F bucket, in ``GRADE_LABELS`` order."""

    buckets = dict.fromkeys(GRADE_LABELS, 0)
    for grade in grades:
        letter = letter_grade(grade)
        if letter is not None:
            buckets[letter] += 1
    return [buckets[label] for label in GRADE_LABELS]
