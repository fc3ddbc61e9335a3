"""Admin configuration for departments, people, courses and enrollments."""
from django.contrib import admin, messages

from . import services
from .exceptions import EnrollmentError
from .models import (
    Assignment,
    AssignmentSubmission,
    Course,
    CourseAnnouncement,
    CourseMaterial,
    Department,
    Enrollment,
    EnrollmentHistory,
    EnrollmentStatus,
    Instructor,
    Student,
)


class EnrollmentInline(admin.TabularInline):
    model = Enrollment
    extra = 0
    fields = ("course", "term", "status", "numeric_grade", "get_letter_grade")
    readonly_fields = fields
    can_delete = False
    show_change_link = True

    @admin.display(description="Letter")
    def get_letter_grade(self, obj):
        return obj.letter_grade or "-"

    def has_add_permission(self, request, obj=None):
        return False


class InstructorInline(admin.TabularInline):
    model = Instructor
    extra = 0
    fields = ("first_name", "last_name", "email", "title")
    show_change_link = True


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "chair", "email", "phone")
    search_fields = ("code", "name")
    inlines = [InstructorInline]


@admin.register(Instructor)
class InstructorAdmin(admin.ModelAdmin):
    list_display = ("last_name", "first_name", "email", "department", "title")
    list_filter = ("department",)
    search_fields = ("first_name", "last_name", "email")


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ("code", "title", "credits", "department", "capacity", "requires_approval", "end_date")
    list_filter = ("department", "requires_approval")
    search_fields = ("code", "title")
    filter_horizontal = ("instructors",)

    def save_model(self, request, obj, form, change):
        if not (change and "requires_approval" in form.changed_data):
            super().save_model(request, obj, form, change)
            return
        requested = obj.requires_approval
        obj.requires_approval = not requested
        super().save_model(request, obj, form, change)
        approved = services.apply_course_approval_toggle(obj, requested, actor=request.user)
        if approved:
            self.message_user(
                request,
                f"Approved {len(approved)} pending enrollment(s) now that approval is off.",
                level=messages.SUCCESS,
            )


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ("name", "email", "major", "department", "advisor", "gpa")
    list_filter = ("department", "academic_level")
    search_fields = ("name", "email", "major")
    readonly_fields = ("gpa",)
    inlines = [EnrollmentInline]
    actions = ["recompute_gpa"]

    @admin.action(description="Recompute GPA of selected students")
    def recompute_gpa(self, request, queryset):
        for student in queryset:
            services.recompute_gpa(student)
        self.message_user(request, f"Recomputed GPA for {queryset.count()} student(s).", level=messages.SUCCESS)

    def save_model(self, request, obj, form, change):
        if not change:
            services.assign_default_advisor(obj)
        super().save_model(request, obj, form, change)

    def has_delete_permission(self, request, obj=None):
        if obj is not None and services.blocking_enrollments(obj):
            return False
        return super().has_delete_permission(request, obj)

    def delete_model(self, request, obj):
        services.delete_student(obj)

    def delete_queryset(self, request, queryset):
        for student in queryset:
            try:
                services.delete_student(student)
            except EnrollmentError as exc:
                self.message_user(request, exc.message, level=messages.ERROR)


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    """Status and grade change only through the actions below or the API."""

    list_display = ("student", "course", "term", "status", "numeric_grade", "enrolled_at")
    list_filter = ("status", "term", "course__department")
    search_fields = ("student__name", "student__email", "course__code")
    readonly_fields = (
        "student",
        "course",
        "term",
        "status",
        "numeric_grade",
        "attempt_number",
        "is_repeat_attempt",
        "enrolled_at",
        "approved_at",
        "completed_at",
    )
    actions = ["approve_pending", "reject_pending", "complete_ended"]

    def has_add_permission(self, request):
        return False

    def _apply(self, request, queryset, label, func):
        done = 0
        for enrollment in queryset.select_related("course"):
            try:
                func(enrollment)
            except EnrollmentError as exc:
                self.message_user(request, f"{enrollment}: {exc.message}", level=messages.WARNING)
            else:
                done += 1
        self.message_user(request, f"{label} {done} enrollment(s).", level=messages.SUCCESS)

    @admin.action(description="Approve selected pending enrollments")
    def approve_pending(self, request, queryset):
        self._apply(
            request,
            queryset.filter(status=EnrollmentStatus.PENDING),
            "Approved",
            lambda e: services.decide_enrollment(e, approve=True, actor=request.user),
        )

    @admin.action(description="Reject selected pending enrollments")
    def reject_pending(self, request, queryset):
        self._apply(
            request,
            queryset.filter(status=EnrollmentStatus.PENDING),
            "Rejected",
            lambda e: services.decide_enrollment(e, approve=False, actor=request.user),
        )

    @admin.action(description="Complete selected enrollments whose term has ended")
    def complete_ended(self, request, queryset):
        self._apply(
            request,
            queryset.filter(status=EnrollmentStatus.APPROVED),
            "Completed",
            lambda e: services.complete_enrollment(e, actor=request.user),
        )

    def delete_model(self, request, obj):
        services.delete_enrollment(obj, actor=request.user)

    def delete_queryset(self, request, queryset):
        for enrollment in queryset:
            services.delete_enrollment(enrollment, actor=request.user)


@admin.register(EnrollmentHistory)
class EnrollmentHistoryAdmin(admin.ModelAdmin):
    list_display = ("created_at", "action", "student", "course", "term", "old_status", "new_status", "actor")
    list_filter = ("action",)
    search_fields = ("student__name", "course__code", "term")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(CourseMaterial)
class CourseMaterialAdmin(admin.ModelAdmin):
    list_display = ("title", "course", "material_type", "is_published", "uploaded_by", "uploaded_at")
    list_filter = ("material_type", "is_published", "course__department")
    search_fields = ("title", "course__code")
    readonly_fields = ("uploaded_by", "uploaded_at")

    def save_model(self, request, obj, form, change):
        if not change:
            obj.uploaded_by = request.user
        super().save_model(request, obj, form, change)


@admin.register(CourseAnnouncement)
class CourseAnnouncementAdmin(admin.ModelAdmin):
    list_display = ("title", "course", "author", "created_at")
    list_filter = ("course__department",)
    search_fields = ("title", "content", "course__code")
    readonly_fields = ("author", "created_at")

    def save_model(self, request, obj, form, change):
        if not change:
            obj.author = request.user
        super().save_model(request, obj, form, change)


class SubmissionInline(admin.TabularInline):
    model = AssignmentSubmission
    extra = 0
    fields = ("student", "submitted_at", "grade")
    readonly_fields = fields
    show_change_link = True

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Assignment)
class AssignmentAdmin(admin.ModelAdmin):
    list_display = ("title", "course", "due_date", "max_points", "is_published", "get_submission_count")
    list_filter = ("is_published", "course__department")
    search_fields = ("title", "course__code")
    inlines = [SubmissionInline]

    @admin.display(description="Submissions")
    def get_submission_count(self, obj):
        return obj.submissions.count()
