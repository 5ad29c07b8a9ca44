from .creation import create_exam
from .loader import EXAM_NOT_FOUND, LOAD_FAILED, QUESTIONS_FAILED, ExamLoadResult, load_exam

__all__ = [
    'create_exam',
    'load_exam',
    'ExamLoadResult',
    'EXAM_NOT_FOUND',
    'QUESTIONS_FAILED',
    'LOAD_FAILED',
]
