from rest_framework import generics, permissions, status, views
from rest_framework.response import Response
from django.shortcuts import get_object_or_404
from django.utils import timezone

from exams.models import Exam
from users.permissions import IsInstructorOrAdmin
from .listing import FILTERS, filter_assignments
from .models import ExamCandidateAssignment
from .serializers import CandidateExamSerializer, AssignmentRosterSerializer


# --- CANDIDATE VIEWS ---

class CandidateExamListView(views.APIView):
    """
    Exams assigned to the logged-in candidate.
    ?filter=all|upcoming|available|past (default: available, or all when a limit is given)
    ?limit=N returns only the N most recent matching assignments (dashboard widget).
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        limit = request.query_params.get('limit')
        if limit:
            try:
                limit = max(int(limit), 0)
            except ValueError:
                return Response({"error": "limit must be an integer"}, status=status.HTTP_400_BAD_REQUEST)
        else:
            limit = None

        exam_filter = request.query_params.get('filter', 'available' if limit is None else 'all')
        if exam_filter not in FILTERS:
            return Response(
                {"error": f"Unknown filter '{exam_filter}'. Use one of: {', '.join(FILTERS)}"},
                status=status.HTTP_400_BAD_REQUEST
            )

        queryset = (
            ExamCandidateAssignment.objects
            .filter(candidate=request.user)
            .select_related('exam', 'exam__course')
            .order_by('-created_at')
        )

        now = timezone.now()
        assignments = filter_assignments(queryset, exam_filter, now)
        if limit is not None:
            assignments = assignments[:limit]
        serializer = CandidateExamSerializer(assignments, many=True, context={'now': now})
        return Response(serializer.data)


class CompleteAssignmentView(views.APIView):
    """Candidate finishes an available exam."""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, exam_id):
        assignment = get_object_or_404(
            ExamCandidateAssignment.objects.select_related('exam'),
            exam_id=exam_id,
            candidate=request.user
        )

        if assignment.status == ExamCandidateAssignment.Status.COMPLETED:
            return Response({"error": "Exam already completed"}, status=status.HTTP_400_BAD_REQUEST)
        if assignment.status != ExamCandidateAssignment.Status.AVAILABLE:
            return Response({"error": "Exam is not available yet"}, status=status.HTTP_400_BAD_REQUEST)

        end_date = assignment.exam.end_date
        if end_date is not None and end_date < timezone.now():
            return Response({"error": "Exam has expired"}, status=status.HTTP_400_BAD_REQUEST)

        assignment.status = ExamCandidateAssignment.Status.COMPLETED
        assignment.save(update_fields=['status'])
        return Response({"status": "Exam completed", "exam_id": assignment.exam_id})


# --- INSTRUCTOR VIEWS ---

class ExamAssignmentRosterView(generics.ListAPIView):
    """Candidates an exam is assigned to, with their current status."""
    permission_classes = [IsInstructorOrAdmin]
    serializer_class = AssignmentRosterSerializer
    pagination_class = None

    def get_queryset(self):
        exams = Exam.objects.all()
        if not self.request.user.is_staff:
            exams = exams.filter(instructor=self.request.user)
        exam = get_object_or_404(exams, id=self.kwargs['exam_id'])
        queryset = exam.candidate_assignments.select_related('candidate').order_by('candidate__email')
        assignment_status = self.request.query_params.get('status')
        if assignment_status:
            queryset = queryset.filter(status=assignment_status)
        return queryset
