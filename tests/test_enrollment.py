from unittest import mock

import pytest
from django.db import DatabaseError

from cores.models import AuditLog
from courses.models import Course, CourseEnrollment
from courses.services import enroll_participants, get_enrolled_courses

pytestmark = pytest.mark.django_db


def enrolled_emails(course):
    return set(CourseEnrollment.objects.filter(course=course).values_list('user__email', flat=True))


def test_enrolls_known_emails_and_skips_unknown(course, instructor, candidates):
    result = enroll_participants(course, [" U1@example.com ", "u2@example.com", "ghost@example.com"], instructor)

    assert result.success
    assert result.message == "Successfully enrolled 2 participant(s)"
    assert enrolled_emails(course) == {"u1@example.com", "u2@example.com"}
    assert CourseEnrollment.objects.get(course=course, user=candidates[0]).enrolled_by == instructor
    assert AuditLog.objects.filter(action=AuditLog.Action.ENROLL, target_object_id=str(course.id)).exists()


def test_enrolling_twice_keeps_one_row_per_user(course, candidates):
    enroll_participants(course, ["u1@example.com"])
    result = enroll_participants(course, ["u1@example.com", "u2@example.com"])

    assert result.success
    assert CourseEnrollment.objects.filter(course=course).count() == 2


@pytest.mark.parametrize("emails", [[], None, ["", "   "]])
def test_empty_email_list_is_rejected(course, emails):
    result = enroll_participants(course, emails)

    assert not result.success
    assert result.message == "No emails provided for enrollment"


def test_no_matching_users_is_rejected(course, candidates):
    result = enroll_participants(course, ["nobody@example.com"])

    assert not result.success
    assert result.message == "No valid users found for the provided emails"
    assert not CourseEnrollment.objects.exists()


def test_database_error_is_reported(course, candidates):
    with mock.patch.object(CourseEnrollment.objects, "bulk_create", side_effect=DatabaseError("disk full")):
        result = enroll_participants(course, ["u1@example.com"])

    assert not result.success
    assert result.message == "disk full"


def test_enrolled_courses_lists_only_the_users_courses(course, instructor, candidates, enroll):
    other = Course.objects.create(title="Physics", instructor=instructor)
    enroll(course, candidates[0])
    enroll(other, candidates[1])

    assert list(get_enrolled_courses(candidates[0])) == [course]
    assert list(get_enrolled_courses(candidates[2])) == []


def test_audit_failure_does_not_undo_enrollment(course, instructor, candidates):
    with mock.patch.object(AuditLog.objects, "create", side_effect=DatabaseError("audit down")):
        result = enroll_participants(course, ["u1@example.com"], instructor)

    assert result.success
    assert enrolled_emails(course) == {"u1@example.com"}


def test_course_table_name():
    assert Course._meta.db_table == "courses"
