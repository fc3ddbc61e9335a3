import datetime
from decimal import Decimal

import pytest
from django.core.cache import cache

from academics import stats
from academics.conf import lms_setting
from academics.models import Course, CourseMaterial, EnrollmentStatus

from .conftest import CURRENT, PAST

pytestmark = pytest.mark.django_db

NOW = datetime.datetime(2025, 10, 15, 12, 0, tzinfo=datetime.timezone.utc)


def test_grades_by_course_averages_graded_rows(make_student, course, ended_course, make_enrollment):
    make_enrollment(make_student(), ended_course, term=PAST, status=EnrollmentStatus.COMPLETED, grade=Decimal("4.0"))
    make_enrollment(make_student(), ended_course, term=PAST, status=EnrollmentStatus.COMPLETED, grade=Decimal("3.0"))
    make_enrollment(make_student(), course)
    assert stats.grades_by_course() == [{"code": "CS050", "avg": 3.5}]


def test_course_capacity_counts_active_rows(make_student, course, ended_course, make_enrollment):
    make_enrollment(make_student(), course)
    data = {item["code"]: item for item in stats.course_capacity()}
    assert data["CS101"] == {"code": "CS101", "capacity": 2, "current": 1, "utilization": 50.0}
    assert data["CS050"]["current"] == 0


def test_grade_distribution_chart(make_student, ended_course, make_enrollment):
    make_enrollment(make_student(), ended_course, term=PAST, status=EnrollmentStatus.COMPLETED, grade=Decimal("3.8"))
    make_enrollment(make_student(), ended_course, term=PAST, status=EnrollmentStatus.COMPLETED, grade=Decimal("1.0"))
    assert stats.grade_distribution_chart() == {"labels": ["A", "B", "C", "D", "F"], "data": [1, 0, 0, 1, 0]}


def test_role_distribution(admin_user, instructor, student):
    assert stats.role_distribution() == [
        {"role": "Admin", "count": 1},
        {"role": "Instructor", "count": 1},
        {"role": "Student", "count": 1},
    ]


def test_enrollment_heatmap(make_student, course, ended_course, make_enrollment, department):
    make_enrollment(make_student(), course)
    make_enrollment(make_student(), ended_course, term=PAST, status=EnrollmentStatus.COMPLETED, grade=Decimal("3.0"))
    assert stats.enrollment_heatmap() == [{"department": department.name, "active": 1, "completed": 1}]


def test_enrollment_trend_is_chronological(make_student, course, ended_course, make_enrollment):
    make_enrollment(make_student(), course)
    make_enrollment(make_student(), course)
    make_enrollment(make_student(), ended_course, term=PAST, status=EnrollmentStatus.COMPLETED, grade=Decimal("3.0"))
    assert stats.enrollment_trend() == {"labels": [PAST, CURRENT], "data": [1, 2]}


def test_courses_per_department_labels_missing_department(course, ended_course):
    Course.objects.create(code="GEN100", title="Orientation")
    assert stats.courses_per_department() == [{"dept": "CS", "count": 2}, {"dept": "N/A", "count": 1}]


def test_admin_capacity_alerts_on_threshold(make_student, course, approval_course, make_enrollment):
    make_enrollment(make_student(), course)
    make_enrollment(make_student(), course, status=EnrollmentStatus.PENDING)
    data = stats.admin_capacity()
    assert data["term"] == CURRENT
    assert data["labels"][0] == "CS101"
    assert data["current"][0] == 2
    assert [alert["code"] for alert in data["alerts"]] == ["CS101"]
    assert data["alerts"][0]["util"] == 100.0


def test_instructor_dashboard(instructor, make_student, course, approval_course, make_enrollment):
    shared = make_student()
    make_enrollment(shared, course)
    make_enrollment(make_student(), course)
    make_enrollment(shared, approval_course, status=EnrollmentStatus.PENDING)

    data = stats.instructor_dashboard(instructor)

    assert data["term"] == CURRENT
    assert data["currentCoursesCount"] == 2
    assert data["activeStudents"] == 2
    assert data["courseLabels"] == ["CS101", "CS490"]
    assert data["enrollmentCounts"] == [2, 1]
    assert data["capacityAvg"] == 50


def test_instructor_dashboard_grades_and_history(instructor, make_student, course, ended_course, make_enrollment):
    make_enrollment(make_student(), course)
    make_enrollment(make_student(), ended_course, term=PAST, status=EnrollmentStatus.COMPLETED, grade=Decimal("4.0"))
    make_enrollment(make_student(), ended_course, term=PAST, status=EnrollmentStatus.COMPLETED, grade=Decimal("0.5"))
    make_enrollment(make_student(), ended_course, term=PAST, status=EnrollmentStatus.DROPPED)
    CourseMaterial.objects.create(course=course, title="Syllabus")

    data = stats.instructor_dashboard(instructor)

    assert data["name"] == "Alan Turing"
    assert data["totalCourses"] == 2
    assert data["gradeLabels"] == ["A", "B", "C", "D", "F"]
    assert data["gradeDistribution"] == [1, 0, 0, 0, 1]
    assert data["currentCourses"] == [
        {
            "courseId": course.pk,
            "code": "CS101",
            "title": "Introduction to Programming",
            "term": CURRENT,
            "credits": 3,
            "enrollmentCount": 1,
            "averageGrade": None,
            "materialsCount": 1,
        }
    ]
    assert data["pastCourses"] == [
        {
            "courseId": ended_course.pk,
            "code": "CS050",
            "title": "Computing Basics",
            "term": PAST,
            "totalStudents": 2,
            "averageGrade": 2.25,
            "passRate": 50.0,
        }
    ]
    assert [m["title"] for m in data["recentMaterials"]] == ["Syllabus"]
    assert len(data["topStudents"]) == 1


def test_student_dashboard(student, course, ended_course, make_enrollment):
    make_enrollment(student, ended_course, term=PAST, status=EnrollmentStatus.COMPLETED, grade=Decimal("4.0"))
    make_enrollment(student, course)
    student.refresh_from_db()

    data = stats.student_dashboard(student)

    assert data["gpa"] == 4.0
    assert data["currentCoursesCount"] == 1
    assert data["completedCourses"] == 1
    assert data["totalCredits"] == 2
    assert data["creditsInProgress"] == 3
    assert data["requiredCredits"] == 120
    assert data["gradeData"] == [1, 0, 0, 0, 0]
    assert [row["term"] for row in data["history"]] == [PAST, CURRENT]
    assert data["topCourses"][0]["courseCode"] == "CS050"
    assert data["topCourses"][0]["letterGrade"] == "A"
    assert data["currentCourses"][0]["courseCode"] == "CS101"


def test_metrics_snapshot_totals(make_student, course, ended_course, make_enrollment):
    graded = make_student()
    make_enrollment(graded, ended_course, term=PAST, status=EnrollmentStatus.COMPLETED, grade=Decimal("3.0"))
    make_enrollment(make_student(), course)

    snapshot = stats.metrics_snapshot(NOW)

    assert snapshot["ts"] == NOW.isoformat()
    assert snapshot["term"] == CURRENT
    assert snapshot["totals"]["students"] == 2
    assert snapshot["totals"]["courses"] == 2
    assert snapshot["totals"]["enrollments"] == 2
    assert snapshot["totals"]["completed"] == 1
    assert snapshot["totals"]["active"] == 1
    assert snapshot["totals"]["avgGpa"] == 3.0


def test_latest_metrics_publishes_on_demand(course):
    assert cache.get(lms_setting("METRICS_CACHE_KEY")) is None
    snapshot = stats.latest_metrics()
    assert cache.get(lms_setting("METRICS_CACHE_KEY")) == snapshot
    assert snapshot["totals"]["courses"] == 1


def test_latest_metrics_picks_up_newly_published_snapshot(make_student, course):
    assert stats.latest_metrics()["totals"]["students"] == 0
    make_student()
    make_student()
    stats.publish_metrics()
    assert stats.latest_metrics()["totals"]["students"] == 2


def test_latest_metrics_recomputes_after_snapshot_expires(settings, make_student, course):
    settings.LMS = {**settings.LMS, "METRICS_INTERVAL_SECONDS": 0}
    assert stats.latest_metrics()["totals"]["students"] == 0
    make_student()
    make_student()
    assert stats.latest_metrics()["totals"]["students"] == 2


def test_metrics_cache_is_shared_across_processes(settings):
    assert settings.CACHES["default"]["BACKEND"] == "django.core.cache.backends.db.DatabaseCache"
