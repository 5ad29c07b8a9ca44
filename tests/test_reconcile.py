from datetime import timedelta
from unittest import mock

import pytest
from django.db import DatabaseError
from django.db.models.query import QuerySet
from django.utils import timezone

from assignments.models import ExamCandidateAssignment
from assignments.services import ReconcileOutcome, reconcile_assignments
from cores.models import Notification

pytestmark = pytest.mark.django_db


def statuses(exam):
    return dict(
        ExamCandidateAssignment.objects.filter(exam=exam).values_list('candidate_id', 'status')
    )


def publish(exam, start_date):
    exam.status = "published"
    exam.start_date = start_date
    exam.save()


def test_no_enrolled_candidates_is_a_successful_no_op(course, make_exam):
    exam = make_exam()

    result = reconcile_assignments(exam.id, course.id, True)

    assert result.outcome == ReconcileOutcome.NO_CANDIDATES
    assert result
    assert ExamCandidateAssignment.objects.count() == 0


def test_unpublished_exam_assigns_pending_to_every_candidate(course, candidates, enroll, make_exam):
    u1, u2, _ = candidates
    enroll(course, u1, u2)
    exam = make_exam()
    now = timezone.now()

    result = reconcile_assignments(exam.id, course.id, False, now=now)

    assert result.outcome == ReconcileOutcome.ASSIGNED
    assert result.created == 2
    assert statuses(exam) == {u1.id: "pending", u2.id: "pending"}
    for assignment in ExamCandidateAssignment.objects.filter(exam=exam):
        assert assignment.assigned_at == now
        assert assignment.created_at == now


def test_republished_exam_that_already_started_becomes_available(course, candidates, enroll, make_exam):
    u1, u2, _ = candidates
    enroll(course, u1, u2)
    exam = make_exam()
    reconcile_assignments(exam.id, course.id, False)

    publish(exam, timezone.now() - timedelta(days=1))
    result = reconcile_assignments(exam.id, course.id, True)

    assert result.created == 0
    assert result.updated == 2
    assert statuses(exam) == {u1.id: "available", u2.id: "available"}


def test_republished_exam_starting_tomorrow_becomes_scheduled(course, candidates, enroll, make_exam):
    u1, u2, _ = candidates
    enroll(course, u1, u2)
    exam = make_exam()
    reconcile_assignments(exam.id, course.id, False)

    publish(exam, timezone.now() + timedelta(days=1))
    reconcile_assignments(exam.id, course.id, True)

    assert statuses(exam) == {u1.id: "scheduled", u2.id: "scheduled"}


def test_stored_published_status_counts_even_when_caller_says_unpublished(course, candidates, enroll, make_exam):
    u1, _, _ = candidates
    enroll(course, u1)
    exam = make_exam(status="published")

    result = reconcile_assignments(exam.id, course.id, False)

    assert result.status == "available"
    assert statuses(exam) == {u1.id: "available"}


def test_late_enrollment_gets_a_new_row_and_leaves_others_alone(course, candidates, enroll, make_exam):
    u1, u2, u3 = candidates
    enroll(course, u1, u2)
    exam = make_exam(status="published")
    first_run = timezone.now() - timedelta(hours=1)
    reconcile_assignments(exam.id, course.id, True, now=first_run)

    enroll(course, u3)
    result = reconcile_assignments(exam.id, course.id, True)

    assert result.created == 1
    assert result.updated == 0
    assert statuses(exam) == {u1.id: "available", u2.id: "available", u3.id: "available"}
    untouched = ExamCandidateAssignment.objects.filter(exam=exam, candidate__in=[u1, u2])
    assert {a.assigned_at for a in untouched} == {first_run}


def test_unpublishing_resets_existing_rows_to_pending_but_keeps_completed(course, candidates, enroll, make_exam):
    u1, u2, _ = candidates
    enroll(course, u1, u2)
    exam = make_exam(status="published")
    reconcile_assignments(exam.id, course.id, True)
    ExamCandidateAssignment.objects.filter(exam=exam, candidate=u2).update(status="completed")

    exam.status = "draft"
    exam.save()
    result = reconcile_assignments(exam.id, course.id, False)

    assert result.updated == 1
    assert statuses(exam) == {u1.id: "pending", u2.id: "completed"}


def test_running_twice_creates_no_duplicates(course, candidates, enroll, make_exam):
    u1, u2, _ = candidates
    enroll(course, u1, u2)
    exam = make_exam(status="published", start_date=timezone.now() + timedelta(days=2))

    first = reconcile_assignments(exam.id, course.id, True)
    second = reconcile_assignments(exam.id, course.id, True)

    assert first.created == 2
    assert second.created == 0
    assert second.updated == 0
    assert ExamCandidateAssignment.objects.filter(exam=exam).count() == 2
    assert statuses(exam) == {u1.id: "scheduled", u2.id: "scheduled"}


def test_only_enrolled_candidates_are_assigned(course, candidates, enroll, make_exam):
    u1, u2, u3 = candidates
    enroll(course, u1, u2)
    exam = make_exam()

    reconcile_assignments(exam.id, course.id, False)

    assert set(statuses(exam)) == {u1.id, u2.id}
    assert not ExamCandidateAssignment.objects.filter(candidate=u3).exists()


def test_bulk_insert_failure_falls_back_to_single_inserts(course, candidates, enroll, make_exam):
    u1, u2, _ = candidates
    enroll(course, u1, u2)
    exam = make_exam()

    manager = ExamCandidateAssignment.objects
    real_create = manager.create

    def flaky_create(**kwargs):
        if kwargs["candidate_id"] == u2.id:
            raise DatabaseError("insert rejected")
        return real_create(**kwargs)

    with mock.patch.object(manager, "bulk_create", side_effect=DatabaseError("batch rejected")), \
            mock.patch.object(manager, "create", side_effect=flaky_create):
        result = reconcile_assignments(exam.id, course.id, False)

    assert result
    assert result.outcome == ReconcileOutcome.PARTIAL
    assert (result.created, result.failed) == (1, 1)
    assert statuses(exam) == {u1.id: "pending"}
    assert Notification.objects.filter(level="warning").exists()


def test_fails_when_no_single_insert_succeeds(course, candidates, enroll, make_exam):
    u1, u2, _ = candidates
    enroll(course, u1, u2)
    exam = make_exam()

    manager = ExamCandidateAssignment.objects
    with mock.patch.object(manager, "bulk_create", side_effect=DatabaseError("batch rejected")), \
            mock.patch.object(manager, "create", side_effect=DatabaseError("insert rejected")):
        result = reconcile_assignments(exam.id, course.id, False)

    assert not result
    assert result.outcome == ReconcileOutcome.FAILED
    assert result.failed == 2
    assert ExamCandidateAssignment.objects.count() == 0


def test_update_failure_is_reported_without_undoing_inserts(course, candidates, enroll, make_exam):
    u1, u2, _ = candidates
    enroll(course, u1)
    exam = make_exam()
    reconcile_assignments(exam.id, course.id, False)
    enroll(course, u2)
    publish(exam, None)

    with mock.patch.object(QuerySet, "update", side_effect=DatabaseError("update rejected")):
        result = reconcile_assignments(exam.id, course.id, True)

    assert not result
    assert result.created == 1
    assert "update" in result.error
    assert statuses(exam) == {u1.id: "pending", u2.id: "available"}


def test_missing_exam_fails(course, candidates, enroll):
    enroll(course, candidates[0])

    result = reconcile_assignments(987654, course.id, True)

    assert not result
    assert result.error == "Exam not found"
    assert ExamCandidateAssignment.objects.count() == 0


def test_rows_inserted_by_a_concurrent_run_count_as_assigned(course, candidates, enroll, make_exam):
    u1, u2, _ = candidates
    enroll(course, u1, u2)
    exam = make_exam(status="published")
    # Another run got there first with the status it derived before publication
    for user in (u1, u2):
        ExamCandidateAssignment.objects.create(exam=exam, candidate=user, status="pending")

    with mock.patch("assignments.services._existing_candidate_ids", return_value=set()):
        result = reconcile_assignments(exam.id, course.id, True)

    assert result
    assert result.outcome == ReconcileOutcome.ASSIGNED
    assert (result.created, result.failed, result.updated) == (0, 0, 2)
    assert statuses(exam) == {u1.id: "available", u2.id: "available"}
    assert ExamCandidateAssignment.objects.filter(exam=exam).count() == 2
