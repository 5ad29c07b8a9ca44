"""
Helpers for the question-pool definition stored on an exam.

A pool looks like::

    {"subjects": [{"subject_id": 3, "count": 5}, ...], "total_questions": 8}

`total_questions` is optional; when it is missing the pool asks for the sum of
the per-subject counts. Stored pools are read defensively since they are kept
verbatim and may predate the current shape.
"""
import json
import logging

logger = logging.getLogger(__name__)


def parse_pool(raw):
    if raw is None or raw == "":
        return None
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning(f"Ignoring unreadable question pool: {raw!r}")
            return None
    if not isinstance(raw, dict):
        logger.warning(f"Ignoring question pool of type {type(raw).__name__}")
        return None
    return raw


def _subject_entries(pool):
    pool = parse_pool(pool)
    if not pool:
        return []
    entries = pool.get("subjects") or []
    return [e for e in entries if isinstance(e, dict)]


def pool_subject_ids(pool):
    """Subject ids in pool order, duplicates removed."""
    ids = []
    for entry in _subject_entries(pool):
        subject_id = entry.get("subject_id", entry.get("subjectId"))
        if subject_id is not None and subject_id not in ids:
            ids.append(subject_id)
    return ids


def pool_question_limit(pool):
    """Total number of questions the pool asks for."""
    parsed = parse_pool(pool)
    if not parsed:
        return 0
    total = parsed.get("total_questions", parsed.get("totalQuestions"))
    if total:
        try:
            return max(int(total), 0)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring bad total_questions in question pool: {total!r}")
    count = 0
    for entry in _subject_entries(parsed):
        try:
            count += max(int(entry.get("count") or 0), 0)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring bad subject count in question pool: {entry!r}")
    return count
