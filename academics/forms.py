"""Forms validating the JSON API payloads."""
from __future__ import annotations

from django import forms
from django.utils import timezone

from .conf import lms_setting
from .grading import MAX_GRADE, MIN_GRADE
from .models import (
    Assignment,
    Course,
    CourseAnnouncement,
    CourseMaterial,
    Department,
    EnrollmentStatus,
    Instructor,
    Student,
)
from .terms import InvalidTerm, normalize_term


class DepartmentForm(forms.ModelForm):
    class Meta:
        model = Department
        fields = ["code", "name", "description", "office_location", "email", "phone", "chair"]


class InstructorForm(forms.ModelForm):
    class Meta:
        model = Instructor
        fields = ["first_name", "last_name", "email", "department", "title", "office_phone"]


class CourseForm(forms.ModelForm):
    class Meta:
        model = Course
        fields = [
            "code",
            "title",
            "credits",
            "department",
            "capacity",
            "requires_approval",
            "start_date",
            "end_date",
            "description",
            "instructors",
        ]


class StudentForm(forms.ModelForm):
    """GPA is derived from enrollments and never accepted from input."""

    class Meta:
        model = Student
        fields = [
            "name",
            "email",
            "major",
            "phone",
            "academic_level",
            "department",
            "advisor",
            "total_credits_required",
            "enrollment_date",
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["total_credits_required"].required = False
        self.fields["enrollment_date"].required = False

    def clean_total_credits_required(self):
        value = self.cleaned_data.get("total_credits_required")
        if not value or value < lms_setting("MIN_REQUIRED_CREDITS"):
            return lms_setting("DEFAULT_REQUIRED_CREDITS")
        return value

    def clean_enrollment_date(self):
        return self.cleaned_data.get("enrollment_date") or timezone.localdate()


def _clean_term(value):
    try:
        return normalize_term(value)
    except InvalidTerm as exc:
        raise forms.ValidationError(str(exc), code="invalid_term") from exc


class _GradeField(forms.DecimalField):
    def __init__(self, **kwargs):
        kwargs.setdefault("required", False)
        super().__init__(
            label="Grade", max_digits=3, decimal_places=2, min_value=MIN_GRADE, max_value=MAX_GRADE, **kwargs
        )


class EnrollmentForm(forms.Form):
    student = forms.ModelChoiceField(label="Student", queryset=Student.objects.all())
    course = forms.ModelChoiceField(label="Course", queryset=Course.objects.all())
    term = forms.CharField(label="Term", max_length=20)
    status = forms.ChoiceField(label="Status", choices=EnrollmentStatus.choices, required=False)
    numeric_grade = _GradeField()
    notes = forms.CharField(label="Notes", required=False, widget=forms.Textarea)

    def clean_term(self):
        return _clean_term(self.cleaned_data["term"])


class EnrollmentUpdateForm(forms.Form):
    """Partial edit: only the fields present in the payload are changed."""

    term = forms.CharField(label="Term", max_length=20, required=False)
    status = forms.ChoiceField(label="Status", choices=EnrollmentStatus.choices, required=False)
    numeric_grade = _GradeField()
    notes = forms.CharField(label="Notes", required=False, widget=forms.Textarea)

    def clean_term(self):
        value = self.cleaned_data.get("term")
        return _clean_term(value) if value else ""


class EnrollRequestForm(forms.Form):
    term = forms.CharField(label="Term", max_length=20, required=False)

    def clean_term(self):
        value = self.cleaned_data.get("term")
        return _clean_term(value) if value else ""


class ApprovalDecisionForm(forms.Form):
    DECISIONS = [
        ("approved", "Approve"),
        ("rejected", "Reject"),
    ]

    decision = forms.ChoiceField(label="Decision", choices=DECISIONS)
    note = forms.CharField(label="Note", required=False, widget=forms.Textarea)


class GradeForm(forms.Form):
    numeric_grade = _GradeField(required=True)


class ApprovalToggleForm(forms.Form):
    """Missing ``requires_approval`` flips the current value."""

    requires_approval = forms.NullBooleanField(label="Requires approval", required=False)


class InstructorCourseForm(forms.ModelForm):
    """Course content form bound to the instructor who teaches the course.

    The course is fixed once the record exists.
    """

    course_error = "You can only manage content of your own courses."

    def __init__(self, data=None, *args, instructor=None, **kwargs):
        instance = kwargs.get("instance")
        creating = instance is None or instance.pk is None
        if data is not None and creating and "is_published" in self._meta.fields and "is_published" not in data:
            # new content is published unless the payload says otherwise
            data = data.copy()
            data["is_published"] = "true"
        super().__init__(data, *args, **kwargs)
        self.instructor = instructor
        if self.instance.pk:
            self.fields["course"].disabled = True

    def clean_course(self):
        course = self.cleaned_data["course"]
        if self.instructor is not None and not course.instructors.filter(pk=self.instructor.pk).exists():
            raise forms.ValidationError(self.course_error, code="not_your_course")
        return course


class CourseMaterialForm(InstructorCourseForm):
    course_error = "You can only add materials to your own courses."

    class Meta:
        model = CourseMaterial
        fields = ["course", "title", "description", "url", "material_type", "is_published"]


class CourseAnnouncementForm(InstructorCourseForm):
    course_error = "You can only create announcements for your own courses."

    class Meta:
        model = CourseAnnouncement
        fields = ["course", "title", "content"]


class AssignmentForm(InstructorCourseForm):
    course_error = "You can only create assignments for your own courses."

    class Meta:
        model = Assignment
        fields = ["course", "title", "description", "instructions", "due_date", "max_points", "is_published"]

    def clean_max_points(self):
        value = self.cleaned_data["max_points"]
        if not value:
            raise forms.ValidationError("Max points must be positive.", code="min_value")
        return value


class SubmissionForm(forms.Form):
    content = forms.CharField(label="Content", required=False, widget=forms.Textarea)


class SubmissionGradeForm(forms.Form):
    points = forms.DecimalField(label="Points", max_digits=6, decimal_places=2, min_value=0)
