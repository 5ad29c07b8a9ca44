# assignments/models.py
from django.db import models
from django.conf import settings
from django.utils import timezone
from exams.models import Exam

class ExamCandidateAssignment(models.Model):
    """Links a candidate to an exam of a course they are enrolled in."""

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        SCHEDULED = "scheduled", "Scheduled"
        AVAILABLE = "available", "Available"
        COMPLETED = "completed", "Completed"

    exam = models.ForeignKey(Exam, related_name='candidate_assignments', on_delete=models.CASCADE)
    candidate = models.ForeignKey(settings.AUTH_USER_MODEL, related_name='exam_assignments', on_delete=models.CASCADE)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)

    # Set explicitly by reconciliation so one run shares a single timestamp
    assigned_at = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'exam_candidate_assignments'
        unique_together = ('exam', 'candidate')

    def __str__(self):
        return f"{self.candidate} - {self.exam.title} ({self.status})"
