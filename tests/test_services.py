from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model

from academics import services
from academics.exceptions import (
    AlreadyCompleted,
    CourseFull,
    DropNotAllowed,
    DuplicateEnrollment,
    GradeNotAllowed,
    InvalidTransition,
    StudentHasActiveEnrollments,
)
from academics.models import Course, Enrollment, EnrollmentHistory, EnrollmentStatus, Student

from .conftest import CURRENT, FUTURE, PAST, TODAY

pytestmark = pytest.mark.django_db


def test_enroll_without_approval_is_approved_in_current_term(student, course):
    enrollment = services.enroll_student(student, course)
    assert enrollment.term == CURRENT
    assert enrollment.status == EnrollmentStatus.APPROVED
    assert enrollment.numeric_grade is None
    assert enrollment.approved_at is not None
    assert EnrollmentHistory.objects.filter(enrollment=enrollment, action="created").exists()


def test_enroll_in_approval_course_starts_pending(student, approval_course):
    enrollment = services.enroll_student(student, approval_course)
    assert enrollment.status == EnrollmentStatus.PENDING
    assert enrollment.approved_at is None


def test_enroll_twice_in_same_term_is_rejected(student, course):
    services.enroll_student(student, course)
    with pytest.raises(DuplicateEnrollment):
        services.enroll_student(student, course)
    assert Enrollment.objects.filter(student=student, course=course).count() == 1


def test_enroll_into_full_course_is_rejected(make_student, course):
    services.enroll_student(make_student(), course)
    services.enroll_student(make_student(), course)
    with pytest.raises(CourseFull):
        services.enroll_student(make_student(), course)


def test_completed_enrollments_count_against_capacity(make_student, course, make_enrollment):
    make_enrollment(make_student(), course, status=EnrollmentStatus.COMPLETED, grade=Decimal("3.0"))
    services.enroll_student(make_student(), course)
    with pytest.raises(CourseFull):
        services.enroll_student(make_student(), course)


def test_pending_enrollments_do_not_take_seats(make_student, approval_course):
    services.enroll_student(make_student(), approval_course)
    services.enroll_student(make_student(), approval_course)
    assert services.seats_taken(approval_course, CURRENT) == 0


def test_cannot_enroll_in_already_completed_course(student, course):
    services.create_enrollment(student, course, PAST, grade="3.7")
    with pytest.raises(AlreadyCompleted):
        services.enroll_student(student, course)


def test_self_enroll_in_past_term_is_closed(student, course):
    with pytest.raises(InvalidTransition):
        services.enroll_student(student, course, term=PAST)


def test_self_enroll_in_future_term(student, course):
    enrollment = services.enroll_student(student, course, term="spring 2026")
    assert enrollment.term == FUTURE


def test_repeat_attempt_is_numbered(student, course):
    services.create_enrollment(student, course, FUTURE, status=EnrollmentStatus.REJECTED)
    enrollment = services.enroll_student(student, course)
    assert enrollment.attempt_number == 2
    assert enrollment.is_repeat_attempt


# create_enrollment


def test_admin_create_in_past_term_is_completed_with_default_grade(student, course):
    enrollment = services.create_enrollment(student, course, PAST)
    assert enrollment.status == EnrollmentStatus.COMPLETED
    assert enrollment.numeric_grade == Decimal("3.5")
    assert enrollment.completed_at is not None


def test_admin_create_in_past_term_keeps_given_grade(student, course):
    enrollment = services.create_enrollment(student, course, PAST, grade="2.25")
    assert enrollment.numeric_grade == Decimal("2.25")


def test_admin_create_in_past_term_overrides_requested_status(student, course):
    enrollment = services.create_enrollment(student, course, PAST, status=EnrollmentStatus.APPROVED)
    assert enrollment.status == EnrollmentStatus.COMPLETED
    assert enrollment.numeric_grade == Decimal("3.5")


def test_admin_create_rejects_grade_in_current_term(student, course):
    with pytest.raises(GradeNotAllowed):
        services.create_enrollment(student, course, CURRENT, grade="3.0")


def test_admin_create_rejects_completed_in_future_term(student, course):
    with pytest.raises(InvalidTransition):
        services.create_enrollment(student, course, FUTURE, status=EnrollmentStatus.COMPLETED)


def test_admin_create_rejects_out_of_range_grade(student, course):
    with pytest.raises(GradeNotAllowed):
        services.create_enrollment(student, course, PAST, grade="4.5")


def test_admin_create_respects_capacity(make_student, course):
    services.create_enrollment(make_student(), course, CURRENT)
    services.create_enrollment(make_student(), course, CURRENT)
    with pytest.raises(CourseFull):
        services.create_enrollment(make_student(), course, CURRENT)


def test_unique_constraint_is_reported_as_duplicate(student, course, make_enrollment):
    make_enrollment(student, course, term=PAST, status=EnrollmentStatus.COMPLETED, grade=Decimal("3.0"))
    with pytest.raises(DuplicateEnrollment):
        services._insert(student=student, course=course, term=PAST, status=EnrollmentStatus.COMPLETED)


# transitions


def test_approve_pending(student, approval_course, instructor):
    enrollment = services.enroll_student(student, approval_course)
    services.decide_enrollment(enrollment, approve=True, actor=instructor.user, note="welcome")
    enrollment.refresh_from_db()
    assert enrollment.status == EnrollmentStatus.APPROVED
    entry = EnrollmentHistory.objects.get(enrollment=enrollment, action="approved")
    assert entry.actor == instructor.user
    assert entry.old_status == EnrollmentStatus.PENDING
    assert entry.note == "welcome"


def test_reject_pending(student, approval_course):
    enrollment = services.enroll_student(student, approval_course)
    services.decide_enrollment(enrollment, approve=False)
    enrollment.refresh_from_db()
    assert enrollment.status == EnrollmentStatus.REJECTED


def test_decide_twice_is_invalid(student, approval_course):
    enrollment = services.enroll_student(student, approval_course)
    services.decide_enrollment(enrollment, approve=False)
    with pytest.raises(InvalidTransition):
        services.decide_enrollment(enrollment, approve=True)


def test_approval_rechecks_capacity(make_student, approval_course):
    first = services.enroll_student(make_student(), approval_course)
    second = services.enroll_student(make_student(), approval_course)
    services.decide_enrollment(first, approve=True)
    with pytest.raises(CourseFull):
        services.decide_enrollment(second, approve=True)


def test_approving_in_past_term_completes_with_default_grade(student, approval_course, make_enrollment):
    enrollment = make_enrollment(student, approval_course, term=PAST, status=EnrollmentStatus.PENDING)
    enrollment = services.decide_enrollment(enrollment, approve=True)
    enrollment.refresh_from_db()
    assert enrollment.status == EnrollmentStatus.COMPLETED
    assert enrollment.numeric_grade == Decimal("3.5")
    assert enrollment.completed_at is not None


def test_rejecting_in_past_term_stays_rejected(student, approval_course, make_enrollment):
    enrollment = make_enrollment(student, approval_course, term=PAST, status=EnrollmentStatus.PENDING)
    services.decide_enrollment(enrollment, approve=False)
    enrollment.refresh_from_db()
    assert enrollment.status == EnrollmentStatus.REJECTED
    assert enrollment.numeric_grade is None


def test_grading_current_term_is_not_allowed(student, course):
    enrollment = services.enroll_student(student, course)
    with pytest.raises(GradeNotAllowed):
        services.grade_enrollment(enrollment, "3.0")


def test_grading_past_term_completes(student, ended_course, make_enrollment):
    enrollment = make_enrollment(student, ended_course, term=PAST)
    services.grade_enrollment(enrollment, "3.9")
    enrollment.refresh_from_db()
    assert enrollment.status == EnrollmentStatus.COMPLETED
    assert enrollment.numeric_grade == Decimal("3.90")
    student.refresh_from_db()
    assert student.gpa == Decimal("3.90")


def test_regrading_completed_enrollment(student, ended_course):
    enrollment = services.create_enrollment(student, ended_course, PAST, grade="2.0")
    services.grade_enrollment(enrollment, "3.0")
    enrollment.refresh_from_db()
    assert enrollment.numeric_grade == Decimal("3.00")


def test_grading_rejected_enrollment_is_invalid(student, ended_course, make_enrollment):
    enrollment = make_enrollment(student, ended_course, term=PAST, status=EnrollmentStatus.REJECTED)
    with pytest.raises(InvalidTransition):
        services.grade_enrollment(enrollment, "3.0")


def test_complete_enrollment_uses_default_grade(student, ended_course, make_enrollment):
    enrollment = make_enrollment(student, ended_course, term=PAST)
    enrollment = services.complete_enrollment(enrollment)
    assert enrollment.status == EnrollmentStatus.COMPLETED
    assert enrollment.numeric_grade == Decimal("3.5")


def test_grading_reads_current_row_from_database(student, ended_course, make_enrollment):
    enrollment = make_enrollment(student, ended_course, term=PAST)
    stale = Enrollment.objects.get(pk=enrollment.pk)
    services.grade_enrollment(enrollment, "2.0")
    services.grade_enrollment(stale, "3.0")
    entry = EnrollmentHistory.objects.filter(enrollment=enrollment, action="graded").latest("id")
    assert entry.old_grade == Decimal("2.00")
    assert entry.new_grade == Decimal("3.00")


def test_completing_stale_instance_checks_stored_status(student, ended_course, make_enrollment):
    enrollment = make_enrollment(student, ended_course, term=PAST)
    stale = Enrollment.objects.get(pk=enrollment.pk)
    services.grade_enrollment(enrollment, "2.0")
    with pytest.raises(InvalidTransition):
        services.complete_enrollment(stale)


def test_update_enrollment_status_transition(student, approval_course):
    enrollment = services.enroll_student(student, approval_course)
    services.update_enrollment(enrollment, status=EnrollmentStatus.APPROVED, notes="override")
    enrollment.refresh_from_db()
    assert enrollment.status == EnrollmentStatus.APPROVED
    assert enrollment.notes == "override"
    with pytest.raises(InvalidTransition):
        services.update_enrollment(enrollment, status=EnrollmentStatus.PENDING)


def test_update_enrollment_moving_to_past_term_completes(student, course):
    enrollment = services.enroll_student(student, course)
    services.update_enrollment(enrollment, term=PAST)
    enrollment.refresh_from_db()
    assert enrollment.term == PAST
    assert enrollment.status == EnrollmentStatus.COMPLETED
    assert enrollment.numeric_grade == Decimal("3.5")


def test_update_enrollment_rejects_grade_in_current_term(student, course):
    enrollment = services.enroll_student(student, course)
    with pytest.raises(GradeNotAllowed):
        services.update_enrollment(enrollment, grade="3.0")


def test_update_enrollment_term_conflict(student, course):
    services.enroll_student(student, course, term=FUTURE)
    enrollment = services.enroll_student(student, course)
    with pytest.raises(DuplicateEnrollment):
        services.update_enrollment(enrollment, term=FUTURE)


def test_notes_edit_leaves_past_term_approved_row_alone(student, ended_course, make_enrollment):
    enrollment = make_enrollment(student, ended_course, term=PAST)
    services.update_enrollment(enrollment, notes="transcript requested")
    enrollment.refresh_from_db()
    assert enrollment.notes == "transcript requested"
    assert enrollment.status == EnrollmentStatus.APPROVED
    assert enrollment.numeric_grade is None


def test_notes_edit_allowed_on_past_term_pending_row(student, approval_course, make_enrollment):
    enrollment = make_enrollment(student, approval_course, term=PAST, status=EnrollmentStatus.PENDING)
    services.update_enrollment(enrollment, status=EnrollmentStatus.PENDING, notes="waiting on advisor")
    enrollment.refresh_from_db()
    assert enrollment.notes == "waiting on advisor"
    assert enrollment.status == EnrollmentStatus.PENDING


# removal


def test_drop_deletes_approved_enrollment(student, course):
    enrollment = services.enroll_student(student, course)
    services.drop_enrollment(enrollment, actor=student.user)
    assert not Enrollment.objects.filter(student=student, course=course).exists()
    entry = EnrollmentHistory.objects.get(student=student, action="dropped")
    assert entry.enrollment is None
    assert entry.new_status == EnrollmentStatus.DROPPED


def test_drop_pending_is_not_allowed(student, approval_course):
    enrollment = services.enroll_student(student, approval_course)
    with pytest.raises(DropNotAllowed):
        services.drop_enrollment(enrollment)


def test_drop_graded_is_not_allowed(student, ended_course):
    enrollment = services.create_enrollment(student, ended_course, PAST)
    with pytest.raises(DropNotAllowed):
        services.drop_enrollment(enrollment)


def test_admin_delete_from_any_state(student, ended_course):
    enrollment = services.create_enrollment(student, ended_course, PAST, grade="4.0")
    student.refresh_from_db()
    assert student.gpa == Decimal("4.00")
    services.delete_enrollment(enrollment)
    student.refresh_from_db()
    assert student.gpa == Decimal("0.00")


def test_delete_student_with_active_enrollment_is_refused(student, course):
    services.enroll_student(student, course)
    with pytest.raises(StudentHasActiveEnrollments):
        services.delete_student(student, today=TODAY)
    assert Student.objects.filter(pk=student.pk).exists()


def test_delete_student_removes_account(student, ended_course):
    services.create_enrollment(student, ended_course, PAST)
    user_id = student.user_id
    services.delete_student(student, today=TODAY)
    assert not Student.objects.filter(pk=student.pk).exists()
    assert not Enrollment.objects.filter(student_id=student.pk).exists()
    assert not get_user_model().objects.filter(pk=user_id).exists()


# batch rules


def test_sweep_completes_ended_enrollments_outside_current_term(make_student, ended_course, make_enrollment):
    stale = make_enrollment(make_student(), ended_course, term=PAST)
    current = make_enrollment(make_student(), ended_course, term=CURRENT)
    pending = make_enrollment(make_student(), ended_course, term="Fall 2024", status=EnrollmentStatus.PENDING)

    assert services.complete_ended_enrollments(today=TODAY) == 1

    stale.refresh_from_db()
    current.refresh_from_db()
    pending.refresh_from_db()
    assert stale.status == EnrollmentStatus.COMPLETED
    assert stale.numeric_grade == Decimal("3.5")
    assert current.status == EnrollmentStatus.APPROVED
    assert pending.status == EnrollmentStatus.PENDING


def test_sweep_skips_courses_that_have_not_ended(student, course, make_enrollment):
    make_enrollment(student, course, term=PAST)
    assert services.complete_ended_enrollments(today=TODAY) == 0


def test_toggle_off_approves_pending_while_seats_remain(make_student, approval_course):
    first = services.enroll_student(make_student(), approval_course)
    second = services.enroll_student(make_student(), approval_course)

    approved = services.apply_course_approval_toggle(approval_course, False)

    assert [e.pk for e in approved] == [first.pk]
    first.refresh_from_db()
    second.refresh_from_db()
    approval_course.refresh_from_db()
    assert not approval_course.requires_approval
    assert first.status == EnrollmentStatus.APPROVED
    assert second.status == EnrollmentStatus.PENDING


def test_toggle_on_leaves_enrollments_alone(student, course):
    enrollment = services.enroll_student(student, course)
    assert services.apply_course_approval_toggle(course, True) == []
    enrollment.refresh_from_db()
    assert enrollment.status == EnrollmentStatus.APPROVED
    course.refresh_from_db()
    assert course.requires_approval


# derived state


def test_gpa_example_with_dropped_row(student, course, ended_course, department, make_enrollment):
    other = Course.objects.create(code="CS060", title="Logic", department=department)
    make_enrollment(student, ended_course, term=PAST, status=EnrollmentStatus.COMPLETED, grade=Decimal("4.0"))
    make_enrollment(student, other, term=PAST, status=EnrollmentStatus.COMPLETED, grade=Decimal("3.0"))
    make_enrollment(student, course, term=PAST, status=EnrollmentStatus.DROPPED, grade=Decimal("2.0"))
    student.refresh_from_db()
    assert student.gpa == Decimal("3.50")
    assert services.recompute_gpa(student) == Decimal("3.50")


def test_assign_default_advisor_picks_first_instructor_by_last_name(department, instructor, other_instructor):
    student = Student(name="New Student", email="new@example.edu", department=department)
    assert services.assign_default_advisor(student) == other_instructor


def test_assign_default_advisor_keeps_existing(department, instructor, other_instructor):
    student = Student(name="New Student", email="new@example.edu", department=department, advisor=instructor)
    assert services.assign_default_advisor(student) == instructor


def test_available_courses_excludes_enrolled_and_counts_seats(student, make_student, course, approval_course):
    services.enroll_student(make_student(), course)
    services.enroll_student(student, approval_course)
    courses = list(services.available_courses(student))
    assert [c.code for c in courses] == ["CS101"]
    assert courses[0].current_enrollments == 1


def test_required_credits_fall_back_to_default(department):
    student = Student.objects.create(
        name="Low Credits", email="low@example.edu", department=department, total_credits_required=2
    )
    assert student.total_credits_required == 120
