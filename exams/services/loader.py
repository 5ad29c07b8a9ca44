import logging
from dataclasses import dataclass, field

from django.db import DatabaseError

from exams.models import Exam, ExamQuestion, Question
from exams.pool import pool_question_limit, pool_subject_ids

logger = logging.getLogger(__name__)

EXAM_NOT_FOUND = "Exam not found"
QUESTIONS_FAILED = "Failed to load exam questions"
LOAD_FAILED = "Failed to load exam"


@dataclass
class ExamLoadResult:
    exam: Exam = None
    question_ids: list = field(default_factory=list)
    questions: list = field(default_factory=list)
    error: str = None


def _linked_questions(question_ids, local_questions):
    if local_questions:
        by_id = {q.id: q for q in local_questions}
    else:
        by_id = Question.objects.prefetch_related('options').in_bulk(question_ids)
    # Always follow the link order, whatever order the source returned
    return [by_id[qid] for qid in question_ids if qid in by_id]


def _pool_questions(pool):
    subject_ids = pool_subject_ids(pool)
    if not subject_ids:
        return []
    questions = list(
        Question.objects
        .filter(subject_id__in=subject_ids)
        .prefetch_related('options')
        .order_by('id')
    )
    return questions[:pool_question_limit(pool)]


def load_exam(exam_id, fallback_resolver=None, local_questions=None):
    """
    Load an exam with its questions. The first non-empty source wins:

    1. explicit question links, in `order_number` order (bodies taken from
       `local_questions` when given, otherwise from the database);
    2. the exam's question pool, truncated to the requested total;
    3. `fallback_resolver(exam_id, local_questions)`.

    Never raises; problems are reported through `ExamLoadResult.error`.
    """
    local_questions = list(local_questions or [])

    try:
        exam = Exam.objects.select_related('course').filter(pk=exam_id).first()
    except DatabaseError as e:
        logger.error(f"Error fetching exam {exam_id}: {e}")
        return ExamLoadResult(error=LOAD_FAILED)

    if exam is None:
        logger.warning(f"Exam not found with ID: {exam_id}")
        return ExamLoadResult(error=EXAM_NOT_FOUND)

    question_ids = []
    try:
        question_ids = list(
            ExamQuestion.objects
            .filter(exam=exam)
            .order_by('order_number')
            .values_list('question_id', flat=True)
        )
        if question_ids:
            questions = _linked_questions(question_ids, local_questions)
        elif exam.use_question_pool and exam.question_pool:
            questions = _pool_questions(exam.question_pool)
            logger.info(f"Selected {len(questions)} questions from pool for exam {exam_id}")
        else:
            questions = []
    except DatabaseError as e:
        logger.error(f"Error fetching questions of exam {exam_id}: {e}")
        return ExamLoadResult(exam=exam, question_ids=question_ids, error=QUESTIONS_FAILED)

    if not questions and fallback_resolver is not None:
        try:
            questions = list(fallback_resolver(exam_id, local_questions) or [])
        except Exception:
            logger.exception(f"Fallback question resolver failed for exam {exam_id}")
            return ExamLoadResult(exam=exam, question_ids=question_ids, error=QUESTIONS_FAILED)
        if questions:
            logger.info(f"Found {len(questions)} questions for exam {exam_id} from fallback")

    logger.info(f"Loaded exam {exam.title!r} with {len(questions)} questions")
    return ExamLoadResult(exam=exam, question_ids=question_ids, questions=questions)
