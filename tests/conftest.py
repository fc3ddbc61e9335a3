import datetime
import itertools

import pytest
from django.test import Client

from academics.models import Course, Department, Enrollment, EnrollmentStatus, Instructor, Student

# "Fall 2025" is pinned as the current term for every test, so
# "Spring 2025" is past and "Spring 2026" is future.
CURRENT = "Fall 2025"
PAST = "Spring 2025"
FUTURE = "Spring 2026"
TODAY = datetime.date(2025, 10, 15)


@pytest.fixture(autouse=True)
def pinned_term(settings):
    settings.LMS = {**settings.LMS, "CURRENT_TERM": CURRENT}


@pytest.fixture
def department(db):
    return Department.objects.create(code="CS", name="Computer Science", email="cs@example.edu")


@pytest.fixture
def instructor(department, django_user_model):
    user = django_user_model.objects.create_user(username="turing", password="pw")
    return Instructor.objects.create(
        user=user,
        first_name="Alan",
        last_name="Turing",
        email="turing@example.edu",
        department=department,
        title="Professor",
    )


@pytest.fixture
def other_instructor(department, django_user_model):
    user = django_user_model.objects.create_user(username="hopper", password="pw")
    return Instructor.objects.create(
        user=user, first_name="Grace", last_name="Hopper", email="hopper@example.edu", department=department
    )


@pytest.fixture
def student(department, django_user_model):
    user = django_user_model.objects.create_user(username="ada", password="pw")
    return Student.objects.create(
        user=user, name="Ada Lovelace", email="ada@example.edu", major="Computer Science", department=department
    )


@pytest.fixture
def make_student(department):
    counter = itertools.count(1)

    def _make(**kwargs):
        n = next(counter)
        kwargs.setdefault("name", f"Student {n}")
        kwargs.setdefault("email", f"student{n}@example.edu")
        kwargs.setdefault("department", department)
        return Student.objects.create(**kwargs)

    return _make


@pytest.fixture
def course(department, instructor):
    course = Course.objects.create(
        code="CS101",
        title="Introduction to Programming",
        credits=3,
        department=department,
        capacity=2,
        start_date=datetime.date(2025, 9, 1),
        end_date=datetime.date(2025, 12, 15),
    )
    course.instructors.add(instructor)
    return course


@pytest.fixture
def approval_course(department, instructor):
    course = Course.objects.create(
        code="CS490",
        title="Research Seminar",
        credits=4,
        department=department,
        capacity=1,
        requires_approval=True,
        start_date=datetime.date(2025, 9, 1),
        end_date=datetime.date(2025, 12, 15),
    )
    course.instructors.add(instructor)
    return course


@pytest.fixture
def ended_course(department, instructor):
    course = Course.objects.create(
        code="CS050",
        title="Computing Basics",
        credits=2,
        department=department,
        capacity=10,
        start_date=datetime.date(2025, 1, 15),
        end_date=datetime.date(2025, 5, 10),
    )
    course.instructors.add(instructor)
    return course


@pytest.fixture
def make_enrollment():
    """Insert a row directly, bypassing the workflow rules."""

    def _make(student, course, term=CURRENT, status=EnrollmentStatus.APPROVED, grade=None):
        return Enrollment.objects.create(student=student, course=course, term=term, status=status, numeric_grade=grade)

    return _make


@pytest.fixture
def student_client(student):
    client = Client()
    client.force_login(student.user)
    return client


@pytest.fixture
def instructor_client(instructor):
    client = Client()
    client.force_login(instructor.user)
    return client
