"""JSON endpoints for the admin CRUD, the student portal, approvals and dashboards."""
from __future__ import annotations

import json
import logging

from django.contrib.auth.mixins import LoginRequiredMixin
from django.core.exceptions import PermissionDenied
from django.db.models import Count, ProtectedError
from django.forms.models import model_to_dict
from django.http import Http404, JsonResponse
from django.shortcuts import get_object_or_404, redirect
from django.utils import timezone
from django.utils.datastructures import MultiValueDict
from django.views import View

from . import services, stats
from .exceptions import EnrollmentError
from .forms import (
    ApprovalDecisionForm,
    ApprovalToggleForm,
    AssignmentForm,
    CourseAnnouncementForm,
    CourseForm,
    CourseMaterialForm,
    DepartmentForm,
    EnrollmentForm,
    EnrollmentUpdateForm,
    EnrollRequestForm,
    GradeForm,
    InstructorForm,
    StudentForm,
    SubmissionForm,
    SubmissionGradeForm,
)
from .grading import letter_grade
from .models import (
    Assignment,
    AssignmentSubmission,
    Course,
    CourseAnnouncement,
    CourseMaterial,
    Department,
    Enrollment,
    EnrollmentStatus,
    Instructor,
    Student,
)
from .terms import InvalidTerm, current_term, normalize_term

logger = logging.getLogger(__name__)


class InvalidPayload(Exception):
    pass


def json_error(message: str, status: int, code: str) -> JsonResponse:
    return JsonResponse({"error": message, "code": code}, status=status)


def form_error_response(form) -> JsonResponse:
    return JsonResponse({"errors": form.errors.get_json_data()}, status=400)


def request_data(request):
    """Form-encoded POST data, or a JSON object body converted to the same shape."""

    if request.content_type != "application/json":
        return request.POST
    try:
        body = json.loads(request.body or b"{}")
    except ValueError as exc:
        raise InvalidPayload("Request body is not valid JSON.") from exc
    if not isinstance(body, dict):
        raise InvalidPayload("Request body must be a JSON object.")
    data = MultiValueDict()
    for key, value in body.items():
        data.setlist(key, value if isinstance(value, list) else [value])
    return data


def merged_data(instance, data, fields):
    """Current field values of ``instance`` overlaid with the submitted ``data``."""

    merged = MultiValueDict()
    for name, value in model_to_dict(instance, fields=fields).items():
        if isinstance(value, list):
            merged.setlist(name, [getattr(item, "pk", item) for item in value])
        else:
            merged.setlist(name, [value])
    for name in data:
        merged.setlist(name, data.getlist(name))
    return merged


def term_param(request):
    term = request.GET.get("term")
    return normalize_term(term) if term else None


def _float(value):
    return float(value) if value is not None else None


def _date(value):
    return value.isoformat() if value else None


# =============================================================================
# SERIALIZERS
# =============================================================================


def serialize_department(department: Department) -> dict:
    return {
        "id": department.pk,
        "code": department.code,
        "name": department.name,
        "description": department.description,
        "officeLocation": department.office_location,
        "email": department.email,
        "phone": department.phone,
        "chairId": department.chair_id,
    }


def serialize_instructor(instructor: Instructor) -> dict:
    return {
        "id": instructor.pk,
        "firstName": instructor.first_name,
        "lastName": instructor.last_name,
        "displayName": instructor.display_name,
        "email": instructor.email,
        "departmentId": instructor.department_id,
        "title": instructor.title,
        "officePhone": instructor.office_phone,
    }


def serialize_student(student: Student) -> dict:
    return {
        "id": student.pk,
        "name": student.name,
        "email": student.email,
        "major": student.major,
        "phone": student.phone,
        "academicLevel": student.academic_level,
        "departmentId": student.department_id,
        "advisorId": student.advisor_id,
        "gpa": _float(student.gpa),
        "totalCreditsRequired": student.total_credits_required,
        "enrollmentDate": _date(student.enrollment_date),
    }


def serialize_course(course: Course) -> dict:
    data = {
        "id": course.pk,
        "code": course.code,
        "title": course.title,
        "credits": course.credits,
        "departmentId": course.department_id,
        "capacity": course.capacity,
        "requiresApproval": course.requires_approval,
        "startDate": _date(course.start_date),
        "endDate": _date(course.end_date),
        "description": course.description,
    }
    if course.pk:
        data["instructorIds"] = [i.pk for i in course.instructors.all()]
    current = getattr(course, "current_enrollments", None)
    if current is not None:
        data["currentEnrollments"] = current
        data["seatsLeft"] = max(course.capacity - current, 0)
    return data


def serialize_enrollment(enrollment: Enrollment) -> dict:
    return {
        "id": enrollment.pk,
        "studentId": enrollment.student_id,
        "studentName": enrollment.student.name,
        "courseId": enrollment.course_id,
        "courseCode": enrollment.course.code,
        "term": enrollment.term,
        "status": enrollment.status,
        "grade": _float(enrollment.numeric_grade),
        "letterGrade": letter_grade(enrollment.numeric_grade),
        "attemptNumber": enrollment.attempt_number,
        "isRepeatAttempt": enrollment.is_repeat_attempt,
        "notes": enrollment.notes,
        "enrolledAt": _date(enrollment.enrolled_at),
        "approvedAt": _date(enrollment.approved_at),
        "completedAt": _date(enrollment.completed_at),
    }


def serialize_material(material: CourseMaterial) -> dict:
    return {
        "id": material.pk,
        "courseId": material.course_id,
        "courseCode": material.course.code,
        "title": material.title,
        "description": material.description,
        "url": material.url,
        "type": material.material_type,
        "isPublished": material.is_published,
        "uploadedById": material.uploaded_by_id,
        "uploadedAt": _date(material.uploaded_at),
    }


def serialize_announcement(announcement: CourseAnnouncement) -> dict:
    return {
        "id": announcement.pk,
        "courseId": announcement.course_id,
        "courseCode": announcement.course.code,
        "authorId": announcement.author_id,
        "title": announcement.title,
        "content": announcement.content,
        "createdAt": _date(announcement.created_at),
    }


def serialize_assignment(assignment: Assignment) -> dict:
    count = getattr(assignment, "submission_count", None)
    return {
        "id": assignment.pk,
        "courseId": assignment.course_id,
        "courseCode": assignment.course.code,
        "title": assignment.title,
        "description": assignment.description,
        "instructions": assignment.instructions,
        "createdAt": _date(assignment.created_at),
        "dueDate": _date(assignment.due_date),
        "maxPoints": assignment.max_points,
        "isPublished": assignment.is_published,
        "submissionCount": count if count is not None else assignment.submissions.count(),
    }


def serialize_submission(submission: AssignmentSubmission) -> dict:
    return {
        "id": submission.pk,
        "assignmentId": submission.assignment_id,
        "studentId": submission.student_id,
        "studentName": submission.student.name,
        "content": submission.content,
        "submittedAt": _date(submission.submitted_at),
        "points": _float(submission.grade),
        "maxPoints": submission.assignment.max_points,
    }


# =============================================================================
# BASE VIEWS AND ROLE MIXINS
# =============================================================================


class ApiView(View):
    """Renders rule violations and missing objects as JSON errors."""

    def dispatch(self, request, *args, **kwargs):
        try:
            return super().dispatch(request, *args, **kwargs)
        except EnrollmentError as exc:
            logger.info("%s rejected: %s", request.path, exc.message)
            return JsonResponse(exc.as_dict(), status=exc.status)
        except InvalidTerm as exc:
            return json_error(str(exc), 400, "invalid_term")
        except InvalidPayload as exc:
            return json_error(str(exc), 400, "invalid_payload")
        except PermissionDenied as exc:
            return json_error(str(exc) or "You do not have access to this resource.", 403, "forbidden")
        except Http404 as exc:
            return json_error(str(exc) or "Not found.", 404, "not_found")


class RoleRequiredMixin(LoginRequiredMixin):
    forbidden_message = "You do not have access to this resource."

    def has_role(self, user) -> bool:
        raise NotImplementedError

    def dispatch(self, request, *args, **kwargs):
        if request.user.is_authenticated and not self.has_role(request.user):
            return json_error(self.forbidden_message, 403, "forbidden")
        return super().dispatch(request, *args, **kwargs)


class AdminRequiredMixin(RoleRequiredMixin):
    forbidden_message = "Only administrators can access this resource."

    def has_role(self, user) -> bool:
        return user.is_staff


class InstructorRequiredMixin(RoleRequiredMixin):
    forbidden_message = "Only instructors can access this resource."

    def has_role(self, user) -> bool:
        return hasattr(user, "instructor_profile")


class StudentPortalMixin(RoleRequiredMixin):
    forbidden_message = "Only students can access this resource."

    def has_role(self, user) -> bool:
        return hasattr(user, "student_profile")


class ApproverRequiredMixin(RoleRequiredMixin):
    forbidden_message = "Only instructors or administrators can review enrollments."

    def has_role(self, user) -> bool:
        return user.is_staff or hasattr(user, "instructor_profile")

    def can_manage(self, enrollment) -> bool:
        user = self.request.user
        if user.is_staff:
            return True
        return enrollment.course.instructors.filter(pk=user.instructor_profile.pk).exists()


# =============================================================================
# ADMIN CRUD
# =============================================================================


class ResourceMixin:
    model = None
    form_class = None
    serialize = None

    def get_queryset(self):
        return self.model.objects.all()

    def get_object(self, pk):
        return get_object_or_404(self.get_queryset(), pk=pk)

    def get_form_kwargs(self):
        return {}

    def get_form(self, data, instance=None):
        kwargs = self.get_form_kwargs()
        if instance is None:
            return self.form_class(data, **kwargs)
        fields = self.form_class._meta.fields
        return self.form_class(merged_data(instance, data, fields), instance=instance, **kwargs)

    def perform_create(self, form):
        return form.save()

    def perform_update(self, form, obj):
        return form.save()

    def perform_delete(self, obj):
        obj.delete()


class CollectionViewBase(ResourceMixin, ApiView):
    def get(self, request):
        return JsonResponse({"results": [self.serialize(obj) for obj in self.get_queryset()]})

    def post(self, request):
        form = self.get_form(request_data(request))
        if not form.is_valid():
            return form_error_response(form)
        obj = self.perform_create(form)
        logger.info("Created %s %s", self.model._meta.verbose_name, obj.pk)
        return JsonResponse(self.serialize(obj), status=201)


class DetailViewBase(ResourceMixin, ApiView):
    def get(self, request, pk):
        return JsonResponse(self.serialize(self.get_object(pk)))

    def post(self, request, pk):
        obj = self.get_object(pk)
        form = self.get_form(request_data(request), instance=obj)
        if not form.is_valid():
            return form_error_response(form)
        obj = self.perform_update(form, obj)
        return JsonResponse(self.serialize(obj))

    def delete(self, request, pk):
        obj = self.get_object(pk)
        try:
            self.perform_delete(obj)
        except ProtectedError:
            return json_error(
                f"Cannot delete {obj} while other records still reference it.", 409, "protected"
            )
        logger.info("Deleted %s %s", self.model._meta.verbose_name, pk)
        return JsonResponse({"deleted": True, "id": pk})


class ResourceCollectionView(AdminRequiredMixin, CollectionViewBase):
    pass


class ResourceDetailView(AdminRequiredMixin, DetailViewBase):
    pass


class DepartmentResource:
    model = Department
    form_class = DepartmentForm
    serialize = staticmethod(serialize_department)


class DepartmentCollectionView(DepartmentResource, ResourceCollectionView):
    pass


class DepartmentDetailView(DepartmentResource, ResourceDetailView):
    pass


class InstructorResource:
    model = Instructor
    form_class = InstructorForm
    serialize = staticmethod(serialize_instructor)


class InstructorCollectionView(InstructorResource, ResourceCollectionView):
    pass


class InstructorDetailView(InstructorResource, ResourceDetailView):
    pass


class CourseResource:
    model = Course
    form_class = CourseForm
    serialize = staticmethod(serialize_course)

    def get_queryset(self):
        return Course.objects.prefetch_related("instructors")

    def perform_update(self, form, obj):
        previous = Course.objects.values_list("requires_approval", flat=True).get(pk=obj.pk)
        requested = form.cleaned_data["requires_approval"]
        course = form.save(commit=False)
        course.requires_approval = previous
        course.save()
        form.save_m2m()
        if requested != previous:
            services.apply_course_approval_toggle(course, requested, actor=self.request.user)
        return course


class CourseCollectionView(CourseResource, ResourceCollectionView):
    pass


class CourseDetailView(CourseResource, ResourceDetailView):
    pass


class StudentResource:
    model = Student
    form_class = StudentForm
    serialize = staticmethod(serialize_student)

    def perform_create(self, form):
        student = form.save(commit=False)
        services.assign_default_advisor(student)
        student.save()
        return student

    def perform_delete(self, obj):
        services.delete_student(obj)


class StudentCollectionView(StudentResource, ResourceCollectionView):
    pass


class StudentDetailView(StudentResource, ResourceDetailView):
    pass


class EnrollmentResource:
    model = Enrollment
    serialize = staticmethod(serialize_enrollment)

    def get_queryset(self):
        return Enrollment.objects.select_related("student", "course")

    def get_form(self, data, instance=None):
        if instance is None:
            return EnrollmentForm(data)
        return EnrollmentUpdateForm(data)

    def perform_create(self, form):
        data = form.cleaned_data
        return services.create_enrollment(
            data["student"],
            data["course"],
            data["term"],
            status=data["status"] or None,
            grade=data["numeric_grade"],
            actor=self.request.user,
            notes=data["notes"],
        )

    def perform_update(self, form, obj):
        data = form.cleaned_data
        return services.update_enrollment(
            obj,
            term=data["term"] or None,
            status=data["status"] or None,
            grade=data["numeric_grade"] if "numeric_grade" in form.data else services.UNCHANGED,
            notes=data["notes"] if "notes" in form.data else None,
            actor=self.request.user,
        )

    def perform_delete(self, obj):
        services.delete_enrollment(obj, actor=self.request.user)


class EnrollmentCollectionView(EnrollmentResource, ResourceCollectionView):
    pass


class EnrollmentDetailView(EnrollmentResource, ResourceDetailView):
    pass


class CourseApprovalToggleView(AdminRequiredMixin, ApiView):
    def post(self, request, pk):
        course = get_object_or_404(Course, pk=pk)
        form = ApprovalToggleForm(request_data(request))
        if not form.is_valid():
            return form_error_response(form)
        requested = form.cleaned_data["requires_approval"]
        if requested is None:
            requested = not course.requires_approval
        approved = services.apply_course_approval_toggle(course, requested, actor=request.user)
        return JsonResponse(
            {"course": serialize_course(course), "autoApproved": [e.pk for e in approved]}
        )


class CompleteEndedEnrollmentsView(AdminRequiredMixin, ApiView):
    def post(self, request):
        completed = services.complete_ended_enrollments(actor=request.user)
        return JsonResponse({"completed": completed})


# =============================================================================
# STUDENT PORTAL
# =============================================================================


class StudentCourseListView(StudentPortalMixin, ApiView):
    def get(self, request):
        student = request.user.student_profile
        term = term_param(request) or current_term()
        courses = services.available_courses(student, term)
        enrolled = student.enrollments.filter(term=term).select_related("student", "course")
        return JsonResponse(
            {
                "term": term,
                "courses": [serialize_course(c) for c in courses.prefetch_related("instructors")],
                "enrollments": [serialize_enrollment(e) for e in enrolled],
            }
        )


class StudentEnrollView(StudentPortalMixin, ApiView):
    def post(self, request, pk):
        course = get_object_or_404(Course, pk=pk)
        form = EnrollRequestForm(request_data(request))
        if not form.is_valid():
            return form_error_response(form)
        enrollment = services.enroll_student(
            request.user.student_profile, course, form.cleaned_data["term"] or None, actor=request.user
        )
        return JsonResponse(serialize_enrollment(enrollment), status=201)


class StudentDropView(StudentPortalMixin, ApiView):
    def post(self, request, pk):
        form = EnrollRequestForm(request_data(request))
        if not form.is_valid():
            return form_error_response(form)
        term = form.cleaned_data["term"] or current_term()
        enrollment = get_object_or_404(
            Enrollment.objects.select_related("course"),
            student=request.user.student_profile,
            course_id=pk,
            term=term,
        )
        services.drop_enrollment(enrollment, actor=request.user)
        return JsonResponse({"dropped": True, "courseId": pk, "term": term})


class StudentAssignmentListView(StudentPortalMixin, ApiView):
    def get(self, request):
        student = request.user.student_profile
        course_ids = student.enrollments.filter(status=EnrollmentStatus.APPROVED).values_list("course_id", flat=True)
        assignments = Assignment.objects.filter(course_id__in=course_ids, is_published=True).select_related("course")
        submitted = {
            s.assignment_id: s
            for s in student.submissions.filter(assignment__in=assignments).select_related("student", "assignment")
        }
        results = []
        for assignment in assignments:
            data = serialize_assignment(assignment)
            submission = submitted.get(assignment.pk)
            data["submission"] = serialize_submission(submission) if submission else None
            results.append(data)
        return JsonResponse({"results": results})


class StudentSubmitView(StudentPortalMixin, ApiView):
    def post(self, request, pk):
        assignment = get_object_or_404(Assignment.objects.select_related("course"), pk=pk)
        form = SubmissionForm(request_data(request))
        if not form.is_valid():
            return form_error_response(form)
        submission = services.submit_assignment(
            request.user.student_profile, assignment, form.cleaned_data["content"]
        )
        return JsonResponse(serialize_submission(submission), status=201)


# =============================================================================
# APPROVALS AND GRADING
# =============================================================================


class ApprovalQueueView(ApproverRequiredMixin, ApiView):
    def get(self, request):
        queryset = (
            Enrollment.objects.filter(status=EnrollmentStatus.PENDING)
            .select_related("student", "course")
            .order_by("enrolled_at", "id")
        )
        if not request.user.is_staff:
            queryset = queryset.filter(course__instructors=request.user.instructor_profile)
        return JsonResponse({"results": [serialize_enrollment(e) for e in queryset]})


class EnrollmentDecisionView(ApproverRequiredMixin, ApiView):
    def post(self, request, pk):
        enrollment = get_object_or_404(Enrollment.objects.select_related("student", "course"), pk=pk)
        if not self.can_manage(enrollment):
            return json_error("You cannot review enrollments of this course.", 403, "forbidden")
        form = ApprovalDecisionForm(request_data(request))
        if not form.is_valid():
            return form_error_response(form)
        enrollment = services.decide_enrollment(
            enrollment,
            approve=form.cleaned_data["decision"] == "approved",
            actor=request.user,
            note=form.cleaned_data["note"],
        )
        return JsonResponse(serialize_enrollment(enrollment))


class EnrollmentGradeView(ApproverRequiredMixin, ApiView):
    def post(self, request, pk):
        enrollment = get_object_or_404(Enrollment.objects.select_related("student", "course"), pk=pk)
        if not self.can_manage(enrollment):
            return json_error("You cannot grade enrollments of this course.", 403, "forbidden")
        form = GradeForm(request_data(request))
        if not form.is_valid():
            return form_error_response(form)
        enrollment = services.grade_enrollment(enrollment, form.cleaned_data["numeric_grade"], actor=request.user)
        return JsonResponse(serialize_enrollment(enrollment))


# =============================================================================
# INSTRUCTOR COURSE CONTENT
# =============================================================================


class OwnedResourceMixin(ResourceMixin):
    """Rows attached to the courses the signed-in instructor teaches."""

    forbidden_object_message = "You can only manage content of your own courses."

    @property
    def instructor(self):
        return self.request.user.instructor_profile

    def get_queryset(self):
        return self.model.objects.filter(course__in=self.instructor.courses.all()).select_related("course")

    def can_modify(self, obj) -> bool:
        return obj.course.instructors.filter(pk=self.instructor.pk).exists()

    def get_object(self, pk):
        obj = get_object_or_404(self.model.objects.select_related("course"), pk=pk)
        if not self.can_modify(obj):
            raise PermissionDenied(self.forbidden_object_message)
        return obj

    def get_form_kwargs(self):
        return {"instructor": self.instructor}


class OwnedCollectionView(InstructorRequiredMixin, OwnedResourceMixin, CollectionViewBase):
    pass


class OwnedDetailView(InstructorRequiredMixin, OwnedResourceMixin, DetailViewBase):
    pass


class MaterialResource:
    model = CourseMaterial
    form_class = CourseMaterialForm
    serialize = staticmethod(serialize_material)
    forbidden_object_message = "You can only manage materials of your own courses."

    def perform_create(self, form):
        material = form.save(commit=False)
        material.uploaded_by = self.request.user
        material.save()
        return material


class MaterialCollectionView(MaterialResource, OwnedCollectionView):
    pass


class MaterialDetailView(MaterialResource, OwnedDetailView):
    pass


class AnnouncementResource:
    model = CourseAnnouncement
    form_class = CourseAnnouncementForm
    serialize = staticmethod(serialize_announcement)
    forbidden_object_message = "Only the author can change this announcement."

    def can_modify(self, obj) -> bool:
        return obj.author_id == self.request.user.pk

    def perform_create(self, form):
        announcement = form.save(commit=False)
        announcement.author = self.request.user
        announcement.save()
        return announcement


class AnnouncementCollectionView(AnnouncementResource, OwnedCollectionView):
    pass


class AnnouncementDetailView(AnnouncementResource, OwnedDetailView):
    pass


class AssignmentResource:
    model = Assignment
    form_class = AssignmentForm
    serialize = staticmethod(serialize_assignment)
    forbidden_object_message = "You can only manage assignments of your own courses."

    def get_queryset(self):
        return super().get_queryset().annotate(submission_count=Count("submissions"))


class AssignmentCollectionView(AssignmentResource, OwnedCollectionView):
    pass


class AssignmentDetailView(AssignmentResource, OwnedDetailView):
    pass


class AssignmentSubmissionListView(InstructorRequiredMixin, ApiView):
    def get(self, request, pk):
        assignment = get_object_or_404(Assignment.objects.select_related("course"), pk=pk)
        if not assignment.course.instructors.filter(pk=request.user.instructor_profile.pk).exists():
            raise PermissionDenied("You can only review submissions of your own courses.")
        submissions = assignment.submissions.select_related("student", "assignment")
        return JsonResponse(
            {"assignment": serialize_assignment(assignment), "results": [serialize_submission(s) for s in submissions]}
        )


class SubmissionGradeView(InstructorRequiredMixin, ApiView):
    def post(self, request, pk):
        submission = get_object_or_404(
            AssignmentSubmission.objects.select_related("student", "assignment__course"), pk=pk
        )
        if not submission.assignment.course.instructors.filter(pk=request.user.instructor_profile.pk).exists():
            raise PermissionDenied("You can only grade submissions of your own courses.")
        form = SubmissionGradeForm(request_data(request))
        if not form.is_valid():
            return form_error_response(form)
        submission = services.grade_submission(submission, form.cleaned_data["points"])
        return JsonResponse(serialize_submission(submission))


# =============================================================================
# DASHBOARDS AND CHARTS
# =============================================================================


class StudentDashboardApi(StudentPortalMixin, ApiView):
    def get(self, request):
        return JsonResponse(stats.student_dashboard(request.user.student_profile, term=term_param(request)))


class InstructorDashboardApi(InstructorRequiredMixin, ApiView):
    def get(self, request):
        return JsonResponse(
            stats.instructor_dashboard(request.user.instructor_profile, term=term_param(request))
        )


class AdminTrendApi(AdminRequiredMixin, ApiView):
    def get(self, request):
        return JsonResponse(stats.enrollment_trend())


class AdminCapacityApi(AdminRequiredMixin, ApiView):
    def get(self, request):
        return JsonResponse(stats.admin_capacity(term=term_param(request)))


class AdminDepartmentsApi(AdminRequiredMixin, ApiView):
    def get(self, request):
        return JsonResponse(stats.courses_per_department(), safe=False)


class DashboardMetricsApi(AdminRequiredMixin, ApiView):
    def get(self, request):
        return JsonResponse(stats.latest_metrics())


class ChartView(LoginRequiredMixin, ApiView):
    chart = None

    def get(self, request):
        return JsonResponse(self.chart(), safe=False)


class GradesByCourseChart(ChartView):
    chart = staticmethod(stats.grades_by_course)


class CourseCapacityChart(ChartView):
    chart = staticmethod(stats.course_capacity)


class GradeDistributionChart(ChartView):
    chart = staticmethod(stats.grade_distribution_chart)


class RoleDistributionChart(ChartView):
    chart = staticmethod(stats.role_distribution)


class EnrollmentHeatmapChart(ChartView):
    chart = staticmethod(stats.enrollment_heatmap)


# =============================================================================
# ACCOUNT AND HEALTH
# =============================================================================


class AccountHomeView(LoginRequiredMixin, View):
    def get(self, request, *args, **kwargs):
        user = request.user
        if hasattr(user, "student_profile"):
            return redirect("student_dashboard")
        if hasattr(user, "instructor_profile"):
            return redirect("instructor_dashboard")
        if user.is_staff:
            return redirect("admin:index")
        return json_error("This account has no role assigned.", 403, "forbidden")


class HealthView(View):
    def get(self, request):
        return JsonResponse({"status": "healthy", "timestamp": timezone.now().isoformat()})


class PingView(View):
    def get(self, request):
        return JsonResponse("pong", safe=False)
