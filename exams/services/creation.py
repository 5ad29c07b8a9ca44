import logging

from django.db import DatabaseError, transaction

from assignments.services import reconcile_assignments
from cores.audit import record_audit
from cores.models import AuditLog, Notification
from cores.notifications import notify
from exams.models import Exam, ExamQuestion, Question
from exams.pool import pool_question_limit, pool_subject_ids

logger = logging.getLogger(__name__)

EXAM_FIELDS = (
    'title', 'description', 'time_limit', 'passing_score', 'shuffle_questions',
    'status', 'start_date', 'end_date', 'use_question_pool', 'question_pool',
)


def _link_questions(exam, question_ids):
    """Insert ordered links for an explicit question list. Returns the number linked."""
    links = [
        ExamQuestion(exam=exam, question_id=question_id, order_number=index)
        for index, question_id in enumerate(question_ids, start=1)
    ]
    with transaction.atomic():
        ExamQuestion.objects.bulk_create(links)
    return len(links)


def _materialize_pool(exam):
    """
    Best-effort pool materialization: the first questions of the pool's
    subjects up to the requested total. Per-subject counts are not enforced.
    """
    subject_ids = pool_subject_ids(exam.question_pool)
    limit = pool_question_limit(exam.question_pool)
    if not subject_ids or limit == 0:
        logger.warning(f"Question pool of exam {exam.id} selects no questions: {exam.question_pool!r}")
        return 0

    with transaction.atomic():
        question_ids = list(
            Question.objects
            .filter(subject_id__in=subject_ids)
            .order_by('id')
            .values_list('id', flat=True)[:limit]
        )
        return _link_questions(exam, question_ids)


def create_exam(data, instructor=None, now=None):
    """
    Create an exam, attach its questions and assign it to the course's candidates.

    `data` holds validated exam fields plus `course` and, for explicit exams,
    `questions` (ordered question ids). Returns the new exam id, or None when
    the exam row itself could not be stored. Failures after that point leave
    the exam in place and are reported as warnings.
    """
    course = data['course']
    try:
        with transaction.atomic():
            exam = Exam.objects.create(
                course=course,
                instructor=instructor,
                **{name: data[name] for name in EXAM_FIELDS if name in data}
            )
    except DatabaseError as e:
        logger.error(f"Error creating exam {data.get('title')!r}: {e}")
        notify("Failed to create exam", Notification.Level.ERROR, instructor)
        return None

    logger.info(f"Exam {exam.id} created for course {course.id}")

    try:
        if exam.use_question_pool:
            linked = _materialize_pool(exam)
            logger.info(f"Selected {linked} pool questions for exam {exam.id}")
        elif data.get('questions'):
            linked = _link_questions(exam, data['questions'])
            logger.info(f"Successfully added {linked} questions to exam {exam.id}")
    except DatabaseError as e:
        logger.error(f"Error adding questions to exam {exam.id}: {e}")
        notify(f"Exam '{exam.title}' was created without its questions", Notification.Level.WARNING, instructor)

    result = reconcile_assignments(
        exam.id, course.id, data.get('status') == Exam.Status.PUBLISHED, now=now, actor=instructor
    )
    if not result:
        notify(
            f"Exam '{exam.title}' was created but could not be assigned to candidates",
            Notification.Level.WARNING, instructor,
        )

    if instructor is not None:
        record_audit(
            instructor, AuditLog.Action.CREATE, 'Exam', exam.id,
            f"Created exam '{exam.title}' ({exam.status}); assignment outcome: {result.outcome.value}"
        )
    notify("Exam created successfully", Notification.Level.SUCCESS, instructor)
    return exam.id
