from .models import ExamCandidateAssignment

Status = ExamCandidateAssignment.Status


def derive_status(is_published, start_date, now):
    """Assignment status for a candidate given the exam's publication and start date."""
    if not is_published:
        return Status.PENDING
    if start_date is not None and start_date > now:
        return Status.SCHEDULED
    return Status.AVAILABLE
