from .models import ExamCandidateAssignment

Status = ExamCandidateAssignment.Status

FILTERS = ("all", "upcoming", "available", "past")


def matches_filter(assignment, exam_filter, now):
    """Whether an assignment belongs in the candidate's exam tab `exam_filter`."""
    exam = assignment.exam
    start_date, end_date = exam.start_date, exam.end_date

    if exam_filter == "upcoming":
        return start_date is not None and start_date > now

    if exam_filter == "available":
        is_started = start_date is None or start_date <= now
        is_not_ended = end_date is None or end_date >= now
        return is_started and is_not_ended and assignment.status == Status.AVAILABLE

    if exam_filter == "past":
        return (end_date is not None and end_date < now) or assignment.status == Status.COMPLETED

    return True


def filter_assignments(assignments, exam_filter, now):
    return [a for a in assignments if matches_filter(a, exam_filter, now)]


def status_badge(assignment, now):
    if assignment.status == Status.COMPLETED:
        return "Completed"

    exam = assignment.exam
    if exam.start_date is not None and exam.start_date > now:
        return "Upcoming"
    if exam.end_date is not None and exam.end_date < now:
        return "Expired"
    return "Available"
