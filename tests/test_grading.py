from decimal import Decimal
from types import SimpleNamespace

import pytest

from academics.grading import (
    compute_gpa,
    default_completion_grade,
    grade_distribution,
    is_valid_grade,
    letter_grade,
)
from academics.models import EnrollmentStatus


def _row(grade, status=EnrollmentStatus.COMPLETED):
    return SimpleNamespace(numeric_grade=None if grade is None else Decimal(grade), status=status)


@pytest.mark.parametrize(
    "grade, letter",
    [("4.00", "A"), ("3.70", "A"), ("3.69", "B"), ("2.70", "B"), ("1.70", "C"), ("0.70", "D"), ("0.69", "F")],
)
def test_letter_grade_thresholds(grade, letter):
    assert letter_grade(Decimal(grade)) == letter


def test_letter_grade_of_missing_grade():
    assert letter_grade(None) is None


def test_gpa_ignores_dropped_and_ungraded_rows():
    rows = [
        _row("4.0"),
        _row("3.0"),
        _row("2.0", status=EnrollmentStatus.DROPPED),
        _row(None, status=EnrollmentStatus.APPROVED),
    ]
    assert compute_gpa(rows) == Decimal("3.50")


def test_gpa_is_zero_without_grades():
    assert compute_gpa([]) == Decimal("0.00")
    assert compute_gpa([_row(None, status=EnrollmentStatus.PENDING)]) == Decimal("0.00")


def test_gpa_rounds_half_up():
    rows = [_row("3.33"), _row("3.34"), _row("3.34")]
    # 10.01 / 3 = 3.3366...
    assert compute_gpa(rows) == Decimal("3.34")


def test_grade_bounds():
    assert is_valid_grade("0")
    assert is_valid_grade(Decimal("4.00"))
    assert not is_valid_grade("4.01")
    assert not is_valid_grade(None)


def test_distribution_buckets_in_label_order():
    grades = [Decimal("3.9"), Decimal("3.8"), Decimal("2.8"), Decimal("1.0"), Decimal("0.1"), None]
    assert grade_distribution(grades) == [2, 1, 0, 1, 1]


def test_default_completion_grade_is_configurable(settings):
    assert default_completion_grade() == Decimal("3.5")
    settings.LMS = {**settings.LMS, "DEFAULT_COMPLETION_GRADE": "3.0"}
    assert default_completion_grade() == Decimal("3.0")
