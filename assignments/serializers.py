from django.utils import timezone
from rest_framework import serializers

from .listing import status_badge
from .models import ExamCandidateAssignment

class CandidateExamSerializer(serializers.ModelSerializer):
    """An assignment as the candidate sees it in their exam list."""
    exam_id = serializers.IntegerField(source='exam.id', read_only=True)
    title = serializers.CharField(source='exam.title', read_only=True)
    description = serializers.CharField(source='exam.description', read_only=True)
    course_title = serializers.CharField(source='exam.course.title', read_only=True)
    time_limit = serializers.IntegerField(source='exam.time_limit', read_only=True)
    start_date = serializers.DateTimeField(source='exam.start_date', read_only=True)
    end_date = serializers.DateTimeField(source='exam.end_date', read_only=True)
    questions_count = serializers.SerializerMethodField()
    badge = serializers.SerializerMethodField()

    class Meta:
        model = ExamCandidateAssignment
        fields = [
            'id', 'exam_id', 'title', 'description', 'course_title', 'time_limit',
            'questions_count', 'start_date', 'end_date', 'status', 'badge', 'assigned_at'
        ]

    def get_questions_count(self, obj):
        return obj.exam.question_links.count()

    def get_badge(self, obj):
        now = self.context.get('now') or timezone.now()
        return status_badge(obj, now)

class AssignmentRosterSerializer(serializers.ModelSerializer):
    """Instructor view of who an exam is assigned to."""
    candidate_email = serializers.CharField(source='candidate.email', read_only=True)
    display_name = serializers.CharField(source='candidate.get_display_name', read_only=True)

    class Meta:
        model = ExamCandidateAssignment
        fields = ['id', 'candidate', 'candidate_email', 'display_name', 'status', 'assigned_at', 'created_at']
