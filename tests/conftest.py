import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from courses.models import Course, CourseEnrollment
from exams.models import Exam, Question, Option, Subject

User = get_user_model()


def make_user(email, role=User.Role.CANDIDATE, **extra):
    return User.objects.create_user(username=email, email=email, password="pass1234", role=role, **extra)


@pytest.fixture
def instructor(db):
    return make_user("teacher@example.com", User.Role.INSTRUCTOR, first_name="Ada", last_name="Teacher")


@pytest.fixture
def other_instructor(db):
    return make_user("colleague@example.com", User.Role.INSTRUCTOR)


@pytest.fixture
def candidates(db):
    return [make_user(f"u{i}@example.com") for i in (1, 2, 3)]


@pytest.fixture
def course(instructor):
    return Course.objects.create(title="Algebra", instructor=instructor, is_published=True)


@pytest.fixture
def enroll():
    def _enroll(course, *users):
        for user in users:
            CourseEnrollment.objects.create(course=course, user=user)
    return _enroll


@pytest.fixture
def make_exam(course, instructor):
    def _make_exam(**fields):
        values = {"title": "Midterm", "course": course, "instructor": instructor, "time_limit": 60}
        values.update(fields)
        return Exam.objects.create(**values)
    return _make_exam


@pytest.fixture
def subjects(db):
    return Subject.objects.create(name="Geometry"), Subject.objects.create(name="Calculus")


@pytest.fixture
def bank(subjects):
    """Three geometry questions followed by three calculus questions, ids ascending."""
    geometry, calculus = subjects
    questions = []
    for subject in (geometry, calculus):
        for n in range(1, 4):
            question = Question.objects.create(subject=subject, text=f"{subject.name} question {n}")
            Option.objects.create(question=question, text="Right", is_correct=True)
            Option.objects.create(question=question, text="Wrong", is_correct=False)
            questions.append(question)
    return questions


@pytest.fixture
def api_client():
    return APIClient()
