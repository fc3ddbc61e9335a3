"""Django models for departments, courses, people and enrollments."""
from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from .conf import lms_setting
from .grading import MAX_GRADE, MIN_GRADE, letter_grade
from .terms import InvalidTerm, normalize_term

GRADE_VALIDATORS = [MinValueValidator(MIN_GRADE), MaxValueValidator(MAX_GRADE)]


class Department(models.Model):
    code = models.CharField("Code", max_length=20, unique=True)
    name = models.CharField("Name", max_length=255)
    description = models.TextField("Description", blank=True)
    office_location = models.CharField("Office location", max_length=255, blank=True)
    email = models.EmailField("Email", blank=True)
    phone = models.CharField("Phone", max_length=50, blank=True)
    chair = models.ForeignKey(
        "Instructor",
        on_delete=models.SET_NULL,
        related_name="chaired_departments",
        null=True,
        blank=True,
        verbose_name="Chair",
    )

    class Meta:
        verbose_name = "department"
        verbose_name_plural = "departments"
        ordering = ["code"]

    def __str__(self) -> str:  # pragma: no cover - human readable labels
        return f"{self.code} - {self.name}"


class Instructor(models.Model):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="instructor_profile",
        null=True,
        blank=True,
        verbose_name="Account",
    )
    first_name = models.CharField("First name", max_length=100)
    last_name = models.CharField("Last name", max_length=100)
    email = models.EmailField("Email", unique=True)
    department = models.ForeignKey(
        Department, on_delete=models.PROTECT, related_name="instructors", verbose_name="Department"
    )
    title = models.CharField("Title", max_length=100, blank=True)
    office_phone = models.CharField("Office phone", max_length=50, blank=True)

    class Meta:
        verbose_name = "instructor"
        verbose_name_plural = "instructors"
        ordering = ["last_name", "first_name"]

    def __str__(self) -> str:  # pragma: no cover - human readable labels
        return f"{self.display_name} ({self.department.code})"

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Student(models.Model):
    ACADEMIC_LEVEL_CHOICES = [
        ("freshman", "Freshman"),
        ("sophomore", "Sophomore"),
        ("junior", "Junior"),
        ("senior", "Senior"),
        ("graduate", "Graduate"),
    ]

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="student_profile",
        null=True,
        blank=True,
        verbose_name="Account",
    )
    name = models.CharField("Name", max_length=255)
    email = models.EmailField("Email", unique=True)
    major = models.CharField("Major", max_length=255, blank=True)
    phone = models.CharField("Phone", max_length=50, blank=True)
    academic_level = models.CharField("Academic level", max_length=20, choices=ACADEMIC_LEVEL_CHOICES, blank=True)
    department = models.ForeignKey(
        Department,
        on_delete=models.PROTECT,
        related_name="students",
        null=True,
        blank=True,
        verbose_name="Department",
    )
    advisor = models.ForeignKey(
        Instructor,
        on_delete=models.SET_NULL,
        related_name="advisees",
        null=True,
        blank=True,
        verbose_name="Advisor",
    )
    # Derived from enrollments; see services.recompute_gpa.
    gpa = models.DecimalField("GPA", max_digits=3, decimal_places=2, default=Decimal("0.00"))
    total_credits_required = models.PositiveIntegerField("Credits required", default=120)
    enrollment_date = models.DateField("Enrollment date", default=timezone.localdate)

    class Meta:
        verbose_name = "student"
        verbose_name_plural = "students"
        ordering = ["name"]

    def __str__(self) -> str:  # pragma: no cover - human readable labels
        return f"{self.name} <{self.email}>"

    def save(self, *args, **kwargs):
        if self.total_credits_required < lms_setting("MIN_REQUIRED_CREDITS"):
            self.total_credits_required = lms_setting("DEFAULT_REQUIRED_CREDITS")
        super().save(*args, **kwargs)


class Course(models.Model):
    code = models.CharField("Code", max_length=20)
    title = models.CharField("Title", max_length=255)
    credits = models.PositiveSmallIntegerField("Credits", default=3)
    department = models.ForeignKey(
        Department,
        on_delete=models.PROTECT,
        related_name="courses",
        null=True,
        blank=True,
        verbose_name="Department",
    )
    capacity = models.PositiveIntegerField("Capacity", default=30)
    requires_approval = models.BooleanField("Requires approval", default=False)
    start_date = models.DateField("Start date", null=True, blank=True)
    end_date = models.DateField("End date", null=True, blank=True)
    description = models.TextField("Description", blank=True)
    instructors = models.ManyToManyField(
        Instructor, related_name="courses", blank=True, verbose_name="Instructors"
    )

    class Meta:
        verbose_name = "course"
        verbose_name_plural = "courses"
        ordering = ["code"]
        constraints = [
            models.UniqueConstraint(fields=["code", "department"], name="course_code_department_unique"),
        ]

    def __str__(self) -> str:  # pragma: no cover - human readable labels
        return f"{self.code} - {self.title}"

    def clean(self):
        super().clean()
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError("Course end date cannot be before its start date.")

    def has_ended(self, today=None) -> bool:
        today = today or timezone.localdate()
        return self.end_date is not None and self.end_date < today


class EnrollmentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"
    DROPPED = "dropped", "Dropped"
    COMPLETED = "completed", "Completed"


class Enrollment(models.Model):
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="enrollments", verbose_name="Student")
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="enrollments", verbose_name="Course")
    term = models.CharField("Term", max_length=20)
    status = models.CharField(
        "Status", max_length=20, choices=EnrollmentStatus.choices, default=EnrollmentStatus.PENDING
    )
    numeric_grade = models.DecimalField(
        "Grade", max_digits=3, decimal_places=2, null=True, blank=True, validators=GRADE_VALIDATORS
    )
    is_repeat_attempt = models.BooleanField("Repeat attempt", default=False)
    attempt_number = models.PositiveSmallIntegerField("Attempt", default=1)
    notes = models.TextField("Notes", blank=True)

    progress_percentage = models.DecimalField("Progress %", max_digits=5, decimal_places=2, default=Decimal("0"))
    total_hours_spent = models.PositiveIntegerField("Hours spent", default=0)
    last_access_date = models.DateTimeField("Last access", null=True, blank=True)

    enrolled_at = models.DateTimeField("Enrolled at", default=timezone.now)
    approved_at = models.DateTimeField("Approved at", null=True, blank=True)
    completed_at = models.DateTimeField("Completed at", null=True, blank=True)

    class Meta:
        verbose_name = "enrollment"
        verbose_name_plural = "enrollments"
        ordering = ["student__name", "course__code"]
        constraints = [
            models.UniqueConstraint(
                fields=["student", "course", "term"], name="enrollment_student_course_term_unique"
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover - human readable labels
        return f"{self.student} -> {self.course.code} {self.term} ({self.status})"

    def clean(self):
        super().clean()
        try:
            self.term = normalize_term(self.term)
        except InvalidTerm as exc:
            raise ValidationError({"term": str(exc)}) from exc

    @property
    def letter_grade(self) -> str | None:
        return letter_grade(self.numeric_grade)

    @property
    def is_active(self) -> bool:
        return self.status == EnrollmentStatus.APPROVED and self.numeric_grade is None

    @property
    def is_completed(self) -> bool:
        return self.status == EnrollmentStatus.COMPLETED and self.numeric_grade is not None


class EnrollmentHistory(models.Model):
    ACTION_CHOICES = [
        ("created", "Created"),
        ("approved", "Approved"),
        ("rejected", "Rejected"),
        ("graded", "Graded"),
        ("completed", "Completed"),
        ("updated", "Updated"),
        ("dropped", "Dropped"),
        ("deleted", "Deleted"),
    ]

    # Kept after the enrollment row is deleted so drops stay auditable.
    enrollment = models.ForeignKey(
        Enrollment,
        on_delete=models.SET_NULL,
        related_name="history",
        null=True,
        blank=True,
        verbose_name="Enrollment",
    )
    student = models.ForeignKey(
        Student, on_delete=models.CASCADE, related_name="enrollment_history", verbose_name="Student"
    )
    course = models.ForeignKey(
        Course, on_delete=models.CASCADE, related_name="enrollment_history", verbose_name="Course"
    )
    term = models.CharField("Term", max_length=20)
    action = models.CharField("Action", max_length=20, choices=ACTION_CHOICES)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="enrollment_changes",
        verbose_name="Changed by",
    )
    old_status = models.CharField("Old status", max_length=20, blank=True)
    new_status = models.CharField("New status", max_length=20, blank=True)
    old_grade = models.DecimalField("Old grade", max_digits=3, decimal_places=2, null=True, blank=True)
    new_grade = models.DecimalField("New grade", max_digits=3, decimal_places=2, null=True, blank=True)
    note = models.TextField("Note", blank=True)
    created_at = models.DateTimeField("Timestamp", auto_now_add=True)

    class Meta:
        verbose_name = "enrollment history"
        verbose_name_plural = "enrollment history"
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:  # pragma: no cover - human readable labels
        return f"{self.get_action_display()} {self.course.code} {self.term} for {self.student}"


class CourseMaterial(models.Model):
    TYPE_CHOICES = [
        ("document", "Document"),
        ("slides", "Slides"),
        ("video", "Video"),
        ("link", "Link"),
    ]

    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="materials", verbose_name="Course")
    title = models.CharField("Title", max_length=255)
    description = models.TextField("Description", blank=True)
    url = models.URLField("URL", max_length=500, blank=True)
    material_type = models.CharField("Type", max_length=20, choices=TYPE_CHOICES, default="document")
    is_published = models.BooleanField("Published", default=True)
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="uploaded_materials",
        null=True,
        blank=True,
        verbose_name="Uploaded by",
    )
    uploaded_at = models.DateTimeField("Uploaded at", default=timezone.now)

    class Meta:
        verbose_name = "course material"
        verbose_name_plural = "course materials"
        ordering = ["-uploaded_at", "-id"]

    def __str__(self) -> str:  # pragma: no cover - human readable labels
        return f"{self.course.code}: {self.title}"


class CourseAnnouncement(models.Model):
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="announcements", verbose_name="Course")
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="course_announcements",
        null=True,
        blank=True,
        verbose_name="Author",
    )
    title = models.CharField("Title", max_length=255)
    content = models.TextField("Content")
    created_at = models.DateTimeField("Created at", default=timezone.now)

    class Meta:
        verbose_name = "announcement"
        verbose_name_plural = "announcements"
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:  # pragma: no cover - human readable labels
        return f"{self.course.code}: {self.title}"


class Assignment(models.Model):
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="assignments", verbose_name="Course")
    title = models.CharField("Title", max_length=255)
    description = models.TextField("Description", blank=True)
    instructions = models.TextField("Instructions", blank=True)
    created_at = models.DateTimeField("Created at", default=timezone.now)
    due_date = models.DateTimeField("Due date", null=True, blank=True)
    max_points = models.PositiveIntegerField("Max points", default=100)
    is_published = models.BooleanField("Published", default=True)

    class Meta:
        verbose_name = "assignment"
        verbose_name_plural = "assignments"
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:  # pragma: no cover - human readable labels
        return f"{self.course.code}: {self.title}"


class AssignmentSubmission(models.Model):
    assignment = models.ForeignKey(
        Assignment, on_delete=models.CASCADE, related_name="submissions", verbose_name="Assignment"
    )
    student = models.ForeignKey(
        Student, on_delete=models.CASCADE, related_name="submissions", verbose_name="Student"
    )
    content = models.TextField("Content", blank=True)
    submitted_at = models.DateTimeField("Submitted at", default=timezone.now)
    # Points out of assignment.max_points, not the 0-4 course grade.
    grade = models.DecimalField("Points", max_digits=6, decimal_places=2, null=True, blank=True)

    class Meta:
        verbose_name = "submission"
        verbose_name_plural = "submissions"
        ordering = ["-submitted_at", "-id"]
        constraints = [
            models.UniqueConstraint(fields=["assignment", "student"], name="submission_assignment_student_unique"),
        ]

    def __str__(self) -> str:  # pragma: no cover - human readable labels
        return f"{self.student} -> {self.assignment}"
