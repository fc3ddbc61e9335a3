"""Errors raised by the enrollment workflow."""
from __future__ import annotations


class EnrollmentError(Exception):
    """Base class for rule violations in the enrollment lifecycle."""

    code = "enrollment_error"
    status = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def as_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class DuplicateEnrollment(EnrollmentError):
    code = "duplicate_enrollment"
    status = 409


class AlreadyCompleted(EnrollmentError):
    code = "already_completed"
    status = 409


class CourseFull(EnrollmentError):
    code = "course_full"
    status = 409


class DropNotAllowed(EnrollmentError):
    code = "drop_not_allowed"


class InvalidTransition(EnrollmentError):
    code = "invalid_transition"


class GradeNotAllowed(EnrollmentError):
    code = "grade_not_allowed"


class StudentHasActiveEnrollments(EnrollmentError):
    code = "student_has_active_enrollments"
    status = 409


class SubmissionNotAllowed(EnrollmentError):
    code = "submission_not_allowed"
