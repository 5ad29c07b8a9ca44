"""
Assignment reconciliation: keeps one ExamCandidateAssignment per enrolled
candidate and brings their status in line with the exam's publication state.
"""
import logging
from dataclasses import dataclass
from enum import Enum

from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from cores.models import Notification
from cores.notifications import notify
from courses.models import CourseEnrollment
from exams.models import Exam

from .models import ExamCandidateAssignment
from .status import derive_status

logger = logging.getLogger(__name__)

Status = ExamCandidateAssignment.Status


class ReconcileOutcome(str, Enum):
    NO_CANDIDATES = "no_candidates"
    ASSIGNED = "assigned"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass
class ReconcileResult:
    outcome: ReconcileOutcome
    status: str = ""
    created: int = 0
    failed: int = 0
    updated: int = 0
    error: str = ""

    @property
    def success(self):
        return self.outcome != ReconcileOutcome.FAILED

    def __bool__(self):
        return self.success

    def as_dict(self):
        return {
            "outcome": self.outcome.value,
            "status": self.status,
            "created": self.created,
            "failed": self.failed,
            "updated": self.updated,
            "error": self.error,
        }


def _failed(exam_id, message, actor=None, **counts):
    logger.error(f"Assignment of exam {exam_id} failed: {message}")
    notify("Failed to assign exam to candidates", Notification.Level.ERROR, actor)
    return ReconcileResult(ReconcileOutcome.FAILED, error=message, **counts)


def _existing_candidate_ids(exam_id):
    return set(
        ExamCandidateAssignment.objects
        .filter(exam_id=exam_id)
        .values_list('candidate_id', flat=True)
    )


def _insert_assignments(exam_id, candidate_ids, status, now):
    """
    Bulk insert, falling back to one row at a time.
    Returns (created, failed, conflicts) where `conflicts` lists candidates a
    concurrent run assigned in the meantime.
    """
    rows = [
        {
            "exam_id": exam_id,
            "candidate_id": candidate_id,
            "status": status,
            "assigned_at": now,
            "created_at": now,
        }
        for candidate_id in candidate_ids
    ]

    try:
        with transaction.atomic():
            ExamCandidateAssignment.objects.bulk_create([ExamCandidateAssignment(**row) for row in rows])
        logger.info(f"Exam {exam_id} assigned to {len(rows)} new candidates in batch")
        return len(rows), 0, []
    except DatabaseError as e:
        logger.error(f"Error in batch assignment for exam {exam_id}: {e}")

    created, failed, conflicts = 0, 0, []
    for row in rows:
        try:
            with transaction.atomic():
                ExamCandidateAssignment.objects.create(**row)
            created += 1
        except IntegrityError:
            logger.info(f"Candidate {row['candidate_id']} already holds an assignment for exam {exam_id}")
            conflicts.append(row['candidate_id'])
        except DatabaseError as e:
            logger.error(f"Error assigning exam {exam_id} to candidate {row['candidate_id']}: {e}")
            failed += 1

    logger.info(f"Individually assigned exam {exam_id} to {created} out of {len(rows)} candidates")
    return created, failed, conflicts


def reconcile_assignments(exam_id, course_id, is_published=False, now=None, actor=None):
    """
    Assign the exam to every candidate enrolled in the course and align the
    status of existing assignments.

    The exam counts as published when either `is_published` is set or its
    stored status is published. `now` is sampled once so every candidate in a
    run gets the same status. Safe to call repeatedly: rows are unique per
    (exam, candidate) and existing ones are only updated.
    """
    now = now or timezone.now()
    logger.info(f"Assigning exam {exam_id} to candidates of course {course_id} (published={is_published})")

    try:
        enrolled_ids = list(
            CourseEnrollment.objects
            .filter(course_id=course_id)
            .order_by('id')
            .values_list('user_id', flat=True)
        )
    except DatabaseError as e:
        return _failed(exam_id, f"Error fetching course enrollments: {e}", actor)

    if not enrolled_ids:
        logger.info(f"No candidates enrolled in course {course_id}")
        return ReconcileResult(ReconcileOutcome.NO_CANDIDATES)

    try:
        exam = Exam.objects.filter(pk=exam_id).values('start_date', 'end_date', 'status').first()
    except DatabaseError as e:
        return _failed(exam_id, f"Error fetching exam details: {e}", actor)
    if exam is None:
        return _failed(exam_id, "Exam not found", actor)

    effective_published = bool(is_published) or exam['status'] == Exam.Status.PUBLISHED
    status = derive_status(effective_published, exam['start_date'], now)
    logger.info(f"Using assignment status {status} for exam {exam_id}")

    try:
        existing_ids = _existing_candidate_ids(exam_id)
    except DatabaseError as e:
        return _failed(exam_id, f"Error checking existing assignments: {e}", actor)

    new_ids = [cid for cid in enrolled_ids if cid not in existing_ids]
    existing = [cid for cid in enrolled_ids if cid in existing_ids]

    result = ReconcileResult(ReconcileOutcome.ASSIGNED, status=status)

    if new_ids:
        result.created, result.failed, conflicts = _insert_assignments(exam_id, new_ids, status, now)
        # Rows a concurrent run inserted first are brought in line with the existing ones
        existing.extend(conflicts)
        if result.created == 0 and not conflicts:
            return _failed(
                exam_id, "Failed to assign exam to any candidates", actor,
                status=status, failed=result.failed,
            )
        if result.failed:
            result.outcome = ReconcileOutcome.PARTIAL
            notify(
                f"Exam assigned to {result.created} of {len(new_ids)} candidates",
                Notification.Level.WARNING, actor,
            )
    else:
        logger.info(f"All candidates already have assignments for exam {exam_id}")

    # Unpublished exams derive `pending`, so this also resets a republished-then-unpublished exam.
    # Completed attempts keep their status.
    if existing:
        try:
            with transaction.atomic():
                result.updated = (
                    ExamCandidateAssignment.objects
                    .filter(exam_id=exam_id, candidate_id__in=existing)
                    .exclude(status__in=[status, Status.COMPLETED])
                    .update(status=status)
                )
            logger.info(f"Updated {result.updated} existing assignments of exam {exam_id} to {status}")
        except DatabaseError as e:
            result.outcome = ReconcileOutcome.FAILED
            result.error = f"Error updating existing assignments: {e}"
            logger.error(result.error)
            notify("Failed to update existing exam assignments", Notification.Level.ERROR, actor)

    return result
