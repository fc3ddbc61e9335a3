from decimal import Decimal

import pytest

from academics.models import EnrollmentStatus

from .conftest import PAST

pytestmark = pytest.mark.django_db


def test_gpa_follows_saves_and_deletes(student, course, ended_course, make_enrollment):
    first = make_enrollment(student, ended_course, term=PAST, status=EnrollmentStatus.COMPLETED, grade=Decimal("4.0"))
    student.refresh_from_db()
    assert student.gpa == Decimal("4.00")

    second = make_enrollment(student, course, term=PAST, status=EnrollmentStatus.COMPLETED, grade=Decimal("2.5"))
    student.refresh_from_db()
    assert student.gpa == Decimal("3.25")

    second.status = EnrollmentStatus.DROPPED
    second.save()
    student.refresh_from_db()
    assert student.gpa == Decimal("4.00")

    first.delete()
    student.refresh_from_db()
    assert student.gpa == Decimal("0.00")


def test_ungraded_enrollment_leaves_gpa_at_zero(student, course, make_enrollment):
    make_enrollment(student, course)
    student.refresh_from_db()
    assert student.gpa == Decimal("0.00")
