"""Enrollment lifecycle: creation, approval, grading, completion and removal.

Every write path for an :class:`~academics.models.Enrollment` goes through this
module so the term rules are applied the same way everywhere:

- a *current* or *future* term never carries a grade and is never Completed;
- a *past* term always ends up Completed with a grade (the configured default
  grade is used when none is supplied).

Capacity checks run inside a transaction after the course row is locked with
``select_for_update``; the (student, course, term) triple is additionally
protected by a database unique constraint. Rule violations raise the typed
errors from :mod:`academics.exceptions`.
"""
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

from django.db import IntegrityError, transaction
from django.db.models import Count, Q
from django.utils import timezone

from .exceptions import (
    AlreadyCompleted,
    CourseFull,
    DropNotAllowed,
    DuplicateEnrollment,
    GradeNotAllowed,
    InvalidTransition,
    StudentHasActiveEnrollments,
    SubmissionNotAllowed,
)
from .grading import compute_gpa, default_completion_grade, is_valid_grade, to_decimal
from .models import (
    AssignmentSubmission,
    Course,
    Enrollment,
    EnrollmentHistory,
    EnrollmentStatus,
    Instructor,
    Student,
)
from .terms import InvalidTerm, TermPhase, classify_term, current_term, normalize_term

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    EnrollmentStatus.PENDING: {EnrollmentStatus.APPROVED, EnrollmentStatus.REJECTED},
    EnrollmentStatus.APPROVED: {EnrollmentStatus.COMPLETED, EnrollmentStatus.DROPPED},
    EnrollmentStatus.REJECTED: set(),
    EnrollmentStatus.DROPPED: set(),
    EnrollmentStatus.COMPLETED: set(),
}

SEAT_HOLDING_STATUSES = (EnrollmentStatus.APPROVED, EnrollmentStatus.COMPLETED)

UNCHANGED = object()


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def _actor(actor):
    if actor is not None and getattr(actor, "is_authenticated", False):
        return actor
    return None


def _record(enrollment, action, actor=None, *, old_status="", old_grade=None, new_status=None, note=""):
    return EnrollmentHistory.objects.create(
        enrollment=enrollment,
        student_id=enrollment.student_id,
        course_id=enrollment.course_id,
        term=enrollment.term,
        action=action,
        actor=_actor(actor),
        old_status=old_status or "",
        new_status=new_status if new_status is not None else enrollment.status,
        old_grade=old_grade,
        new_grade=enrollment.numeric_grade,
        note=note,
    )


def _lock_course(course) -> Course:
    return Course.objects.select_for_update().get(pk=course.pk)


def _validated_grade(grade) -> Decimal:
    try:
        value = to_decimal(grade)
    except (InvalidOperation, ValueError) as exc:
        raise GradeNotAllowed(f"Grade {grade!r} is not a number.") from exc
    if value is None or not is_valid_grade(value):
        raise GradeNotAllowed("Grade must be between 0.00 and 4.00.")
    return value


def _phase(term, today=None) -> TermPhase:
    try:
        return classify_term(term, today)
    except InvalidTerm as exc:
        raise InvalidTransition(str(exc)) from exc


def seats_taken(course, term, exclude_pk=None) -> int:
    """Approved plus completed enrollments of ``course`` in ``term``."""

    qs = Enrollment.objects.filter(course=course, term=term, status__in=SEAT_HOLDING_STATUSES)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    return qs.count()


def _check_duplicate(student, course, term, exclude_pk=None):
    qs = Enrollment.objects.filter(student=student, course=course, term=term)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    if qs.exists():
        raise DuplicateEnrollment(f"Already enrolled in {course.code} for {term}.")


def _check_not_completed(student, course, exclude_pk=None):
    qs = Enrollment.objects.filter(student=student, course=course, status=EnrollmentStatus.COMPLETED)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    if qs.exists():
        raise AlreadyCompleted(f"{course.code} has already been completed.")


def _check_capacity(course, term, exclude_pk=None):
    if seats_taken(course, term, exclude_pk=exclude_pk) >= course.capacity:
        raise CourseFull(f"Course {course.code} is full.")


def _check_new_seat(student, course, term, exclude_pk=None):
    _check_duplicate(student, course, term, exclude_pk=exclude_pk)
    _check_not_completed(student, course, exclude_pk=exclude_pk)
    _check_capacity(course, term, exclude_pk=exclude_pk)


def _insert(**fields) -> Enrollment:
    try:
        with transaction.atomic():
            return Enrollment.objects.create(**fields)
    except IntegrityError as exc:
        raise DuplicateEnrollment(
            f"Already enrolled in {fields['course'].code} for {fields['term']}."
        ) from exc


def _attempt_number(student, course) -> int:
    return Enrollment.objects.filter(student=student, course=course).count() + 1


# ---------------------------------------------------------------------------
# creation
# ---------------------------------------------------------------------------


def enroll_student(student, course, term=None, actor=None, today=None) -> Enrollment:
    """Self-enroll ``student`` in ``course`` (current term unless ``term`` is given)."""

    term = normalize_term(term) if term else current_term(today)
    if _phase(term, today) == TermPhase.PAST:
        raise InvalidTransition(f"Enrollment for {term} is closed.")

    with transaction.atomic():
        course = _lock_course(course)
        _check_new_seat(student, course, term)
        status = EnrollmentStatus.PENDING if course.requires_approval else EnrollmentStatus.APPROVED
        attempt = _attempt_number(student, course)
        now = timezone.now()
        enrollment = _insert(
            student=student,
            course=course,
            term=term,
            status=status,
            numeric_grade=None,
            attempt_number=attempt,
            is_repeat_attempt=attempt > 1,
            enrolled_at=now,
            approved_at=now if status == EnrollmentStatus.APPROVED else None,
        )
        _record(enrollment, "created", actor)

    logger.info(
        "Enrolled student %s in %s for %s with status %s", student.pk, course.code, term, status
    )
    return enrollment


def create_enrollment(student, course, term, status=None, grade=None, actor=None, today=None, notes="") -> Enrollment:
    """Administrative create; applies the term rules instead of trusting the input."""

    term = normalize_term(term)
    grade = _validated_grade(grade) if grade not in (None, "") else None
    phase = _phase(term, today)
    now = timezone.now()

    with transaction.atomic():
        course = _lock_course(course)
        if phase == TermPhase.PAST:
            if status and status != EnrollmentStatus.COMPLETED:
                logger.info("Recording %s enrollment in past term %s as completed", status, term)
            status = EnrollmentStatus.COMPLETED
            if grade is None:
                grade = default_completion_grade()
            _check_duplicate(student, course, term)
        else:
            if grade is not None:
                raise GradeNotAllowed(f"Grades cannot be recorded for {term} until the term is over.")
            status = status or (
                EnrollmentStatus.PENDING if course.requires_approval else EnrollmentStatus.APPROVED
            )
            if status == EnrollmentStatus.COMPLETED:
                raise InvalidTransition(f"Enrollments in {term} cannot be Completed yet.")
            if status in (EnrollmentStatus.PENDING, EnrollmentStatus.APPROVED):
                _check_new_seat(student, course, term)
            else:
                _check_duplicate(student, course, term)

        attempt = _attempt_number(student, course)
        enrollment = _insert(
            student=student,
            course=course,
            term=term,
            status=status,
            numeric_grade=grade,
            attempt_number=attempt,
            is_repeat_attempt=attempt > 1,
            notes=notes or "",
            enrolled_at=now,
            approved_at=now if status in SEAT_HOLDING_STATUSES else None,
            completed_at=now if status == EnrollmentStatus.COMPLETED else None,
        )
        _record(enrollment, "created", actor)

    logger.info("Created enrollment %s (%s %s, %s)", enrollment.pk, course.code, term, status)
    return enrollment


# ---------------------------------------------------------------------------
# transitions
# ---------------------------------------------------------------------------


def decide_enrollment(enrollment, approve: bool, actor=None, note="", today=None) -> Enrollment:
    """Approve or reject a Pending enrollment.

    Approving a request whose term is already over completes it with the
    default grade.
    """

    with transaction.atomic():
        course = _lock_course(enrollment.course)
        enrollment = Enrollment.objects.select_for_update().get(pk=enrollment.pk)
        if enrollment.status != EnrollmentStatus.PENDING:
            raise InvalidTransition(
                f"Only pending enrollments can be decided (current status: {enrollment.get_status_display()})."
            )
        old_status = enrollment.status
        if approve:
            _check_capacity(course, enrollment.term)
            enrollment.status = EnrollmentStatus.APPROVED
            enrollment.approved_at = timezone.now()
            if _phase(enrollment.term, today) == TermPhase.PAST:
                logger.info("Approved enrollment %s in past term %s; completing it", enrollment.pk, enrollment.term)
                enrollment.status = EnrollmentStatus.COMPLETED
                enrollment.numeric_grade = default_completion_grade()
                enrollment.completed_at = enrollment.approved_at
        else:
            enrollment.status = EnrollmentStatus.REJECTED
        enrollment.save(update_fields=["status", "approved_at", "numeric_grade", "completed_at"])
        _record(enrollment, "approved" if approve else "rejected", actor, old_status=old_status, note=note)

    logger.info("Enrollment %s %s", enrollment.pk, enrollment.status)
    return enrollment


def _complete(enrollment, grade, actor=None, action="completed"):
    old_status, old_grade = enrollment.status, enrollment.numeric_grade
    enrollment.status = EnrollmentStatus.COMPLETED
    enrollment.numeric_grade = grade
    enrollment.completed_at = enrollment.completed_at or timezone.now()
    enrollment.save(update_fields=["status", "numeric_grade", "completed_at"])
    _record(enrollment, action, actor, old_status=old_status, old_grade=old_grade)
    return enrollment


def grade_enrollment(enrollment, grade, actor=None, today=None) -> Enrollment:
    """Record a grade, which completes the enrollment. Only allowed once the term is over."""

    grade = _validated_grade(grade)
    with transaction.atomic():
        enrollment = Enrollment.objects.select_for_update().get(pk=enrollment.pk)
        if _phase(enrollment.term, today) != TermPhase.PAST:
            raise GradeNotAllowed(f"Grades for {enrollment.term} can be recorded once the term is over.")
        if enrollment.status not in SEAT_HOLDING_STATUSES:
            raise InvalidTransition(f"Cannot grade a {enrollment.get_status_display().lower()} enrollment.")
        _complete(enrollment, grade, actor, action="graded")
    logger.info("Graded enrollment %s with %s", enrollment.pk, grade)
    return enrollment


def complete_enrollment(enrollment, grade=None, actor=None, today=None) -> Enrollment:
    """Approved -> Completed; the default grade is used when ``grade`` is omitted."""

    grade = _validated_grade(grade) if grade not in (None, "") else default_completion_grade()
    with transaction.atomic():
        enrollment = Enrollment.objects.select_for_update().get(pk=enrollment.pk)
        if enrollment.status != EnrollmentStatus.APPROVED:
            raise InvalidTransition(
                f"Only approved enrollments can be completed (current status: {enrollment.get_status_display()})."
            )
        if _phase(enrollment.term, today) != TermPhase.PAST:
            raise GradeNotAllowed(f"{enrollment.term} has not ended yet.")
        _complete(enrollment, grade, actor)
    return enrollment


def update_enrollment(enrollment, *, term=None, status=None, grade=UNCHANGED, notes=None, actor=None, today=None) -> Enrollment:
    """Administrative edit of term, status, grade and notes."""

    old_status, old_grade = enrollment.status, enrollment.numeric_grade
    new_term = normalize_term(term) if term else enrollment.term
    new_status = status or enrollment.status
    if grade is UNCHANGED:
        new_grade = enrollment.numeric_grade
    else:
        new_grade = _validated_grade(grade) if grade not in (None, "") else None

    rules_apply = (
        new_term != enrollment.term
        or new_status != old_status
        or new_grade != old_grade
    )
    if not rules_apply:
        if notes is not None and notes != enrollment.notes:
            with transaction.atomic():
                enrollment.notes = notes
                enrollment.save(update_fields=["notes"])
                _record(enrollment, "updated", actor, old_status=old_status, old_grade=old_grade)
        return enrollment

    phase = _phase(new_term, today)
    if phase == TermPhase.PAST:
        if status and status != EnrollmentStatus.COMPLETED:
            raise InvalidTransition(f"Enrollments in past term {new_term} must be Completed.")
        new_status = EnrollmentStatus.COMPLETED
        if new_grade is None:
            new_grade = default_completion_grade()
    else:
        if new_grade is not None:
            raise GradeNotAllowed(f"Grades cannot be recorded for {new_term} until the term is over.")
        if new_status == EnrollmentStatus.COMPLETED:
            raise InvalidTransition(f"Enrollments in {new_term} cannot be Completed yet.")

    if new_status != old_status and new_status not in ALLOWED_TRANSITIONS[EnrollmentStatus(old_status)]:
        raise InvalidTransition(
            f"Cannot change status from {EnrollmentStatus(old_status).label} to {EnrollmentStatus(new_status).label}."
        )

    now = timezone.now()
    with transaction.atomic():
        course = _lock_course(enrollment.course)
        if new_term != enrollment.term:
            _check_duplicate(enrollment.student, course, new_term, exclude_pk=enrollment.pk)
        if new_status == EnrollmentStatus.APPROVED and (
            old_status != EnrollmentStatus.APPROVED or new_term != enrollment.term
        ):
            _check_capacity(course, new_term, exclude_pk=enrollment.pk)

        enrollment.term = new_term
        enrollment.status = new_status
        enrollment.numeric_grade = new_grade
        if notes is not None:
            enrollment.notes = notes
        if new_status == EnrollmentStatus.APPROVED and enrollment.approved_at is None:
            enrollment.approved_at = now
        if new_status == EnrollmentStatus.COMPLETED and enrollment.completed_at is None:
            enrollment.completed_at = now
        try:
            with transaction.atomic():
                enrollment.save()
        except IntegrityError as exc:
            raise DuplicateEnrollment(f"Already enrolled in {course.code} for {new_term}.") from exc
        _record(enrollment, "updated", actor, old_status=old_status, old_grade=old_grade)

    logger.info("Updated enrollment %s: %s -> %s", enrollment.pk, old_status, new_status)
    return enrollment


# ---------------------------------------------------------------------------
# removal
# ---------------------------------------------------------------------------


def drop_enrollment(enrollment, actor=None) -> None:
    """Drop deletes the row; only approved, ungraded enrollments qualify."""

    if enrollment.status != EnrollmentStatus.APPROVED or enrollment.numeric_grade is not None:
        raise DropNotAllowed("Unable to drop: enrollment not approved or already graded.")
    with transaction.atomic():
        _record(enrollment, "dropped", actor, old_status=enrollment.status, new_status=EnrollmentStatus.DROPPED)
        enrollment.delete()
    logger.info("Dropped %s for student %s", enrollment.course.code, enrollment.student_id)


def delete_enrollment(enrollment, actor=None) -> None:
    with transaction.atomic():
        _record(enrollment, "deleted", actor, old_status=enrollment.status, new_status="")
        enrollment.delete()
    logger.info("Deleted enrollment of student %s in %s", enrollment.student_id, enrollment.course_id)


def blocking_enrollments(student, today=None) -> list[Enrollment]:
    """Ungraded enrollments in courses that have not ended (or have no end date)."""

    today = today or timezone.localdate()
    return [
        e
        for e in student.enrollments.select_related("course")
        if e.numeric_grade is None and (e.course.end_date is None or e.course.end_date > today)
    ]


def delete_student(student, today=None) -> None:
    """Delete a student with their enrollments and linked account.

    Refused while :func:`blocking_enrollments` finds anything.
    """

    active = blocking_enrollments(student, today)
    if active:
        raise StudentHasActiveEnrollments(
            f"Cannot delete student '{student.name}' because they have {len(active)} active "
            "enrollment(s) in courses that haven't ended yet."
        )
    with transaction.atomic():
        user = student.user
        student.delete()
        if user is not None:
            user.delete()
    logger.warning("Deleted student %s (%s)", student.name, student.email)


# ---------------------------------------------------------------------------
# batch rules
# ---------------------------------------------------------------------------


def complete_ended_enrollments(today=None, actor=None) -> int:
    """Complete approved enrollments whose course has ended, skipping the current term."""

    today = today or timezone.localdate()
    current = current_term(today)
    candidates = (
        Enrollment.objects.filter(status=EnrollmentStatus.APPROVED, course__end_date__lt=today)
        .exclude(term=current)
        .select_related("course")
        .order_by("id")
    )
    grade = default_completion_grade()
    completed = 0
    for enrollment in candidates:
        try:
            phase = classify_term(enrollment.term, today)
        except InvalidTerm:
            logger.warning("Skipping enrollment %s with unparseable term %r", enrollment.pk, enrollment.term)
            continue
        if phase != TermPhase.PAST:
            continue
        with transaction.atomic():
            _complete(
                enrollment,
                enrollment.numeric_grade if enrollment.numeric_grade is not None else grade,
                actor,
            )
        completed += 1
    logger.info("Term-end sweep completed %s enrollment(s)", completed)
    return completed


def apply_course_approval_toggle(course, requires_approval: bool, actor=None, today=None) -> list[Enrollment]:
    """Persist ``requires_approval``; switching it off approves waiting students while seats remain."""

    approved: list[Enrollment] = []
    with transaction.atomic():
        locked = _lock_course(course)
        previous = locked.requires_approval
        locked.requires_approval = requires_approval
        locked.save(update_fields=["requires_approval"])
        course.requires_approval = requires_approval

        if previous and not requires_approval:
            pending = locked.enrollments.filter(status=EnrollmentStatus.PENDING).order_by("enrolled_at", "id")
            for enrollment in pending:
                try:
                    if classify_term(enrollment.term, today) == TermPhase.PAST:
                        continue
                except InvalidTerm:
                    continue
                if seats_taken(locked, enrollment.term) >= locked.capacity:
                    continue
                enrollment.status = EnrollmentStatus.APPROVED
                enrollment.approved_at = timezone.now()
                enrollment.save(update_fields=["status", "approved_at"])
                _record(
                    enrollment,
                    "approved",
                    actor,
                    old_status=EnrollmentStatus.PENDING,
                    note="Course no longer requires approval.",
                )
                approved.append(enrollment)

    logger.info(
        "Course %s requires_approval=%s; auto-approved %s pending enrollment(s)",
        course.code,
        requires_approval,
        len(approved),
    )
    return approved


# ---------------------------------------------------------------------------
# derived state
# ---------------------------------------------------------------------------


def recompute_gpa(student) -> Decimal:
    """Store the mean grade of the student's graded, non-dropped enrollments."""

    student_id = getattr(student, "pk", student)
    gpa = compute_gpa(Enrollment.objects.filter(student_id=student_id))
    Student.objects.filter(pk=student_id).update(gpa=gpa)
    if isinstance(student, Student):
        student.gpa = gpa
    return gpa


def assign_default_advisor(student) -> Instructor | None:
    """Give a student without an advisor the first instructor of their department."""

    if student.advisor_id is None and student.department_id is not None:
        advisor = (
            Instructor.objects.filter(department_id=student.department_id)
            .order_by("last_name", "first_name")
            .first()
        )
        if advisor is not None:
            student.advisor = advisor
    return student.advisor


def available_courses(student, term=None, today=None):
    """Courses the student is not yet enrolled in for ``term``, annotated with seat usage."""

    term = normalize_term(term) if term else current_term(today)
    enrolled_ids = Enrollment.objects.filter(student=student, term=term).values_list("course_id", flat=True)
    qs = Course.objects.exclude(pk__in=enrolled_ids).select_related("department")
    if student.department_id:
        qs = qs.filter(department_id=student.department_id)
    return qs.annotate(
        current_enrollments=Count(
            "enrollments",
            filter=Q(enrollments__term=term, enrollments__status__in=SEAT_HOLDING_STATUSES),
        )
    ).order_by("code")


# ---------------------------------------------------------------------------
# coursework
# ---------------------------------------------------------------------------


def submit_assignment(student, assignment, content="", now=None) -> AssignmentSubmission:
    """Hand in (or replace) a student's work for a published assignment.

    The student needs an approved enrollment in the assignment's course; work
    is refused after the due date or once it has been graded.
    """

    now = now or timezone.now()
    if not assignment.is_published:
        raise SubmissionNotAllowed(f"'{assignment.title}' is not open for submissions.")
    if assignment.due_date is not None and now > assignment.due_date:
        raise SubmissionNotAllowed(f"'{assignment.title}' was due {assignment.due_date:%Y-%m-%d %H:%M}.")
    enrolled = Enrollment.objects.filter(
        student=student, course_id=assignment.course_id, status=EnrollmentStatus.APPROVED
    ).exists()
    if not enrolled:
        raise SubmissionNotAllowed("Only students enrolled in the course can submit work.")

    with transaction.atomic():
        submission, created = AssignmentSubmission.objects.select_for_update().get_or_create(
            assignment=assignment, student=student, defaults={"content": content or "", "submitted_at": now}
        )
        if not created:
            if submission.grade is not None:
                raise SubmissionNotAllowed("This submission has already been graded.")
            submission.content = content or ""
            submission.submitted_at = now
            submission.save(update_fields=["content", "submitted_at"])

    logger.info(
        "Student %s %s assignment %s", student.pk, "submitted" if created else "resubmitted", assignment.pk
    )
    return submission


def grade_submission(submission, points) -> AssignmentSubmission:
    """Score a submission between 0 and the assignment's max points."""

    try:
        value = to_decimal(points)
    except (InvalidOperation, ValueError) as exc:
        raise GradeNotAllowed(f"Points {points!r} is not a number.") from exc
    max_points = submission.assignment.max_points
    if value is None or value < 0 or value > max_points:
        raise GradeNotAllowed(f"Points must be between 0 and {max_points}.")
    submission.grade = value
    submission.save(update_fields=["grade"])
    logger.info("Graded submission %s with %s/%s", submission.pk, value, max_points)
    return submission
