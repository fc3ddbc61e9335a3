"""
Aggregates behind the dashboards, the chart endpoints and the metrics loop.

Every function returns plain dicts/lists of JSON-friendly values.
"""
from __future__ import annotations

import datetime
import logging
from collections import defaultdict
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.db.models import Avg, Count, Q
from django.utils import timezone

from .conf import lms_setting
from .grading import GRADE_LABELS, grade_distribution, letter_grade
from .models import Assignment, Course, CourseMaterial, Department, Enrollment, EnrollmentStatus, Student
from .terms import InvalidTerm, TermPhase, classify_term, current_term, term_sort_key

logger = logging.getLogger(__name__)

PASSING_GRADE = Decimal("1.0")


def _float(value, places=2):
    if value is None:
        return None
    return round(float(value), places)


def _utilization(current: int, capacity: int) -> float:
    if not capacity:
        return 0.0
    return round(100.0 * current / capacity, 1)


# =============================================================================
# CHART DATA
# =============================================================================


def grades_by_course():
    rows = (
        Enrollment.objects.filter(numeric_grade__isnull=False)
        .values("course__code")
        .annotate(avg=Avg("numeric_grade"))
        .order_by("course__code")
    )
    return [{"code": row["course__code"], "avg": _float(row["avg"])} for row in rows]


def course_capacity():
    courses = Course.objects.filter(capacity__gt=0).annotate(
        current=Count(
            "enrollments",
            filter=Q(enrollments__status=EnrollmentStatus.APPROVED, enrollments__numeric_grade__isnull=True),
        )
    )
    data = [
        {
            "code": course.code,
            "capacity": course.capacity,
            "current": course.current,
            "utilization": _utilization(course.current, course.capacity),
        }
        for course in courses
    ]
    data.sort(key=lambda item: item["utilization"], reverse=True)
    return data


def grade_distribution_chart(enrollments=None):
    qs = enrollments if enrollments is not None else Enrollment.objects.filter(numeric_grade__isnull=False)
    grades = [e.numeric_grade for e in qs if e.numeric_grade is not None]
    return {"labels": GRADE_LABELS, "data": grade_distribution(grades)}


def role_distribution():
    User = get_user_model()
    return [
        {"role": "Admin", "count": User.objects.filter(is_staff=True).count()},
        {"role": "Instructor", "count": User.objects.filter(instructor_profile__isnull=False).count()},
        {"role": "Student", "count": User.objects.filter(student_profile__isnull=False).count()},
    ]


def enrollment_heatmap():
    departments = Department.objects.annotate(
        active=Count(
            "courses__enrollments",
            filter=Q(
                courses__enrollments__status=EnrollmentStatus.APPROVED,
                courses__enrollments__numeric_grade__isnull=True,
            ),
        ),
        completed=Count(
            "courses__enrollments",
            filter=Q(
                courses__enrollments__status=EnrollmentStatus.COMPLETED,
                courses__enrollments__numeric_grade__isnull=False,
            ),
        ),
    )
    data = [{"department": d.name, "active": d.active, "completed": d.completed} for d in departments]
    data.sort(key=lambda item: item["active"] + item["completed"], reverse=True)
    return data


# =============================================================================
# ADMIN DASHBOARD
# =============================================================================


def enrollment_trend():
    rows = Enrollment.objects.exclude(term="").values("term").annotate(count=Count("id"))
    ordered = sorted(rows, key=lambda row: term_sort_key(row["term"]))
    return {
        "labels": [row["term"] for row in ordered],
        "data": [row["count"] for row in ordered],
    }


def courses_per_department():
    rows = Course.objects.values("department__code").annotate(count=Count("id")).order_by("-count", "department__code")
    return [{"dept": row["department__code"] or "N/A", "count": row["count"]} for row in rows]


def admin_capacity(term: str | None = None, today: datetime.date | None = None, limit: int = 10):
    term = term or current_term(today)
    threshold = lms_setting("CAPACITY_ALERT_THRESHOLD")
    courses = Course.objects.select_related("department").annotate(
        current=Count(
            "enrollments",
            filter=Q(
                enrollments__term=term,
                enrollments__status__in=[EnrollmentStatus.APPROVED, EnrollmentStatus.PENDING],
            ),
        )
    )
    items = [
        {
            "code": c.code,
            "title": c.title,
            "dept": c.department.code if c.department else "N/A",
            "capacity": c.capacity,
            "current": c.current,
        }
        for c in courses
    ]
    top = sorted(items, key=lambda item: item["current"], reverse=True)[:limit]
    alerts = []
    for item in items:
        util = _utilization(item["current"], item["capacity"])
        if item["capacity"] > 0 and util >= threshold:
            alerts.append({**item, "util": util})
    alerts.sort(key=lambda item: item["util"], reverse=True)
    return {
        "term": term,
        "labels": [item["code"] for item in top],
        "current": [item["current"] for item in top],
        "capacity": [item["capacity"] for item in top],
        "alerts": alerts[:limit],
    }


# =============================================================================
# ROLE DASHBOARDS
# =============================================================================


def _average(grades):
    grades = [g for g in grades if g is not None]
    if not grades:
        return None
    return _float(sum(grades) / len(grades))


def _past_course_history(course, enrollments, today):
    past = []
    for e in enrollments:
        if e.status in (EnrollmentStatus.DROPPED, EnrollmentStatus.REJECTED):
            continue
        try:
            if classify_term(e.term, today) != TermPhase.PAST:
                continue
        except InvalidTerm:
            continue
        past.append(e)
    if not past:
        return None
    passed = sum(1 for e in past if e.numeric_grade is not None and e.numeric_grade >= PASSING_GRADE)
    return {
        "courseId": course.pk,
        "code": course.code,
        "title": course.title,
        "term": max((e.term for e in past), key=term_sort_key),
        "totalStudents": len(past),
        "averageGrade": _average(e.numeric_grade for e in past),
        "passRate": round(100.0 * passed / len(past), 1),
    }


def instructor_dashboard(instructor, term: str | None = None, today: datetime.date | None = None):
    term = term or current_term(today)
    live = ~Q(status__in=[EnrollmentStatus.DROPPED, EnrollmentStatus.REJECTED])
    all_courses = list(
        instructor.courses.order_by("code")
        .prefetch_related("enrollments__student")
        .annotate(materials_count=Count("materials"))
    )

    per_course = {}
    for course in all_courses:
        enrollments = list(course.enrollments.all())
        in_term = [e for e in enrollments if e.term == term]
        per_course[course.pk] = {
            "all": enrollments,
            "live": [e for e in in_term if e.status not in (EnrollmentStatus.DROPPED, EnrollmentStatus.REJECTED)],
            "filled": sum(1 for e in in_term if e.status in (EnrollmentStatus.APPROVED, EnrollmentStatus.COMPLETED)),
        }

    current_courses = [c for c in all_courses if per_course[c.pk]["live"]] or all_courses
    active_students = (
        Enrollment.objects.filter(live, course__in=current_courses, term=term)
        .values("student_id")
        .distinct()
        .count()
    )
    fill_rates = [
        per_course[c.pk]["filled"] / max(1, c.capacity) * 100.0 for c in current_courses
    ]

    # current-term rows are never graded, so the chart covers every graded term
    graded = [
        e.numeric_grade
        for c in all_courses
        for e in per_course[c.pk]["all"]
        if e.numeric_grade is not None and e.status != EnrollmentStatus.DROPPED
    ]

    students = {}
    for c in current_courses:
        for e in per_course[c.pk]["live"]:
            students[e.student_id] = e.student
    top_students = sorted(students.values(), key=lambda s: (-s.gpa, s.name))[:5]

    past_courses = [
        row for row in (_past_course_history(c, per_course[c.pk]["all"], today) for c in all_courses) if row
    ]
    materials = CourseMaterial.objects.filter(course__in=all_courses).select_related("course")[:5]

    return {
        "term": term,
        "name": instructor.display_name,
        "department": instructor.department.name,
        "email": instructor.email,
        "totalCourses": len(all_courses),
        "currentCoursesCount": len(current_courses),
        "activeStudents": active_students,
        "courseLabels": [c.code for c in current_courses],
        "enrollmentCounts": [len(per_course[c.pk]["live"]) for c in current_courses],
        "capacityAvg": round(sum(fill_rates) / len(fill_rates)) if fill_rates else 0,
        "gradeLabels": GRADE_LABELS,
        "gradeDistribution": grade_distribution(graded),
        "currentCourses": [
            {
                "courseId": c.pk,
                "code": c.code,
                "title": c.title,
                "term": term,
                "credits": c.credits,
                "enrollmentCount": len(per_course[c.pk]["live"]),
                "averageGrade": _average(e.numeric_grade for e in per_course[c.pk]["live"]),
                "materialsCount": c.materials_count,
            }
            for c in current_courses
        ],
        "pastCourses": past_courses,
        "topStudents": [
            {"studentId": s.pk, "name": s.name, "major": s.major, "gpa": _float(s.gpa)} for s in top_students
        ],
        "recentMaterials": [
            {"id": m.pk, "courseCode": m.course.code, "title": m.title, "uploadedAt": m.uploaded_at.isoformat()}
            for m in materials
        ],
    }


def _summary(enrollment):
    course = enrollment.course
    return {
        "courseId": course.pk,
        "courseCode": course.code,
        "courseTitle": course.title,
        "credits": course.credits,
        "term": enrollment.term,
        "grade": _float(enrollment.numeric_grade),
        "letterGrade": letter_grade(enrollment.numeric_grade),
        "status": enrollment.status,
        "department": course.department.name if course.department else None,
    }


def student_dashboard(student, term: str | None = None, today: datetime.date | None = None):
    term = term or current_term(today)
    enrollments = list(student.enrollments.select_related("course__department"))
    graded = [e for e in enrollments if e.numeric_grade is not None and e.status != EnrollmentStatus.DROPPED]
    current = [
        e for e in enrollments
        if e.term == term and e.status != EnrollmentStatus.DROPPED and e.numeric_grade is None
    ]

    history = defaultdict(lambda: {"courseCount": 0, "totalCredits": 0})
    for e in enrollments:
        history[e.term]["courseCount"] += 1
        history[e.term]["totalCredits"] += e.course.credits

    by_grade = sorted(graded, key=lambda e: e.numeric_grade, reverse=True)
    return {
        "term": term,
        "name": student.name,
        "major": student.major,
        "gpa": _float(student.gpa),
        "currentCoursesCount": len(current),
        "completedCourses": len(graded),
        "totalCredits": sum(e.course.credits for e in graded),
        "creditsInProgress": sum(e.course.credits for e in current),
        "requiredCredits": student.total_credits_required,
        "history": [
            {"term": label, **values}
            for label, values in sorted(history.items(), key=lambda item: term_sort_key(item[0]))
        ],
        "gradeLabels": GRADE_LABELS,
        "gradeData": grade_distribution(e.numeric_grade for e in graded),
        "topCourses": [_summary(e) for e in by_grade[:3]],
        "weakCourses": [_summary(e) for e in list(reversed(by_grade))[:3]],
        "currentCourses": [_summary(e) for e in sorted(current, key=lambda e: e.course.code)],
    }


# =============================================================================
# METRICS SNAPSHOT
# =============================================================================


def metrics_snapshot(now: datetime.datetime | None = None):
    now = now or timezone.now()
    term = current_term(timezone.localdate(now))
    completed = Enrollment.objects.filter(
        Q(status=EnrollmentStatus.COMPLETED)
        | Q(course__end_date__lt=now.date())
        | Q(numeric_grade__isnull=False)
    ).count()
    active = Enrollment.objects.filter(
        term=term, status__in=[EnrollmentStatus.APPROVED, EnrollmentStatus.PENDING]
    ).count()
    active_last_hour = Enrollment.objects.filter(
        last_access_date__gte=now - datetime.timedelta(hours=1)
    ).count()
    avg_gpa = Student.objects.filter(gpa__gt=0).aggregate(avg=Avg("gpa"))["avg"]

    return {
        "ts": now.isoformat(),
        "term": term,
        "totals": {
            "students": Student.objects.count(),
            "courses": Course.objects.count(),
            "enrollments": Enrollment.objects.count(),
            "completed": completed,
            "active": active,
            "activeLastHour": active_last_hour,
            "avgGpa": _float(avg_gpa) or 0.0,
            "materials": CourseMaterial.objects.count(),
            "assignments": Assignment.objects.count(),
        },
        "departments": courses_per_department(),
    }


def publish_metrics(now: datetime.datetime | None = None, ttl: float | None = None):
    """Compute a snapshot and store it for ``ttl`` seconds (the metrics interval by default)."""

    snapshot = metrics_snapshot(now)
    if ttl is None:
        ttl = lms_setting("METRICS_INTERVAL_SECONDS")
    cache.set(lms_setting("METRICS_CACHE_KEY"), snapshot, timeout=ttl)
    return snapshot


def latest_metrics():
    """Last published snapshot, computing one on demand once the previous one has expired."""

    snapshot = cache.get(lms_setting("METRICS_CACHE_KEY"))
    if snapshot is None:
        logger.info("No fresh dashboard metrics; computing on demand")
        snapshot = publish_metrics()
    return snapshot
