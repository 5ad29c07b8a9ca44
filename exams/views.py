import csv
import io
import logging

from django.db import DatabaseError, transaction
from rest_framework import viewsets, permissions, status, filters
from rest_framework.decorators import action
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.response import Response

from assignments.models import ExamCandidateAssignment
from assignments.services import reconcile_assignments
from cores.models import AuditLog
from users.permissions import IsInstructorOrAdmin
from .models import Exam, Question, Option, Subject
from .serializers import (
    ExamSerializer, ExamCreateSerializer, QuestionSerializer,
    CandidateQuestionSerializer, SubjectSerializer
)
from .services import create_exam, load_exam, EXAM_NOT_FOUND, LOAD_FAILED

logger = logging.getLogger(__name__)

class ExamViewSet(viewsets.ModelViewSet):
    lookup_value_regex = r'\d+'

    # Enable search on title and course title
    filter_backends = [filters.SearchFilter]
    search_fields = ['title', 'course__title']

    def get_queryset(self):
        queryset = Exam.objects.select_related('course').order_by('-created_at')
        if not self.request.user.is_staff:
            queryset = queryset.filter(instructor=self.request.user)
        course_id = self.request.query_params.get('course_id')
        if course_id:
            queryset = queryset.filter(course_id=course_id)
        return queryset

    def get_serializer_class(self):
        if self.action == 'create':
            return ExamCreateSerializer
        return ExamSerializer

    def get_permissions(self):
        if self.action == 'retrieve':
            return [permissions.IsAuthenticated()]
        return [IsInstructorOrAdmin()]

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        exam_id = create_exam(serializer.validated_data, instructor=request.user)
        if exam_id is None:
            return Response({"error": "Failed to create exam"}, status=status.HTTP_400_BAD_REQUEST)

        exam = Exam.objects.select_related('course').get(pk=exam_id)
        return Response(ExamSerializer(exam).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        user = request.user
        is_instructor = getattr(user, 'is_instructor', False)

        if is_instructor:
            # Answer keys stay with the exam's own instructor (or staff)
            if not self.get_queryset().filter(pk=pk).exists():
                return Response({"error": EXAM_NOT_FOUND}, status=status.HTTP_404_NOT_FOUND)
        else:
            # Candidates only see exams assigned to them that have opened
            opened = ExamCandidateAssignment.objects.filter(
                exam_id=pk,
                candidate=user,
                status__in=[ExamCandidateAssignment.Status.AVAILABLE, ExamCandidateAssignment.Status.COMPLETED],
            ).exists()
            if not opened:
                return Response({"error": EXAM_NOT_FOUND}, status=status.HTTP_404_NOT_FOUND)

        result = load_exam(pk)
        if result.error == EXAM_NOT_FOUND:
            return Response({"error": result.error}, status=status.HTTP_404_NOT_FOUND)
        if result.error == LOAD_FAILED:
            return Response({"error": result.error}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        question_serializer = QuestionSerializer if is_instructor else CandidateQuestionSerializer
        data = ExamSerializer(result.exam).data
        data['question_ids'] = result.question_ids
        data['questions'] = question_serializer(result.questions, many=True).data
        data['error'] = result.error
        return Response(data)

    def perform_update(self, serializer):
        previous = (serializer.instance.status, serializer.instance.start_date)
        exam = serializer.save()

        if (exam.status, exam.start_date) == previous:
            return

        if exam.status != previous[0]:
            AuditLog.objects.create(
                actor=self.request.user,
                action=AuditLog.Action.PUBLISH,
                target_model='Exam',
                target_object_id=str(exam.id),
                details=f"Exam '{exam.title}' status changed from {previous[0]} to {exam.status}"
            )

        result = reconcile_assignments(exam.id, exam.course_id, exam.is_published, actor=self.request.user)
        if not result:
            logger.warning(f"Re-assignment after updating exam {exam.id} failed: {result.error}")

    @action(detail=True, methods=['post'], url_path='assign-candidates')
    def assign_candidates(self, request, pk=None):
        """
        Assigns this exam to every candidate enrolled in its course and
        refreshes the status of existing assignments.
        """
        exam = self.get_object()
        result = reconcile_assignments(exam.id, exam.course_id, exam.is_published, actor=request.user)

        AuditLog.objects.create(
            actor=request.user,
            action=AuditLog.Action.ASSIGN,
            target_model='Exam',
            target_object_id=str(exam.id),
            details=f"Assignment outcome: {result.outcome.value} "
                    f"(created={result.created}, failed={result.failed}, updated={result.updated})"
        )

        code = status.HTTP_200_OK if result else status.HTTP_400_BAD_REQUEST
        return Response(result.as_dict(), status=code)


class QuestionViewSet(viewsets.ModelViewSet):
    queryset = Question.objects.select_related('subject').prefetch_related('options').order_by('-id')
    serializer_class = QuestionSerializer
    permission_classes = [IsInstructorOrAdmin]

    # Enable Search and Filtering for the Question Bank
    filter_backends = [filters.SearchFilter]
    search_fields = ['text', 'subject__name']

    def get_queryset(self):
        queryset = super().get_queryset()
        # Filter by Subject if provided ?subject_id=1
        subject_id = self.request.query_params.get('subject_id')
        if subject_id:
            queryset = queryset.filter(subject_id=subject_id)
        return queryset

    @action(detail=False, methods=['post'], url_path='bulk-upload', parser_classes=[MultiPartParser, FormParser])
    def bulk_upload(self, request):
        """
        Upload questions via CSV.
        Expected CSV Header: question_text, question_type, subject, difficulty, points, options, correct_answer, explanation
        """
        file_obj = request.FILES.get('file')
        if not file_obj:
            return Response({"error": "No file uploaded"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            decoded_file = file_obj.read().decode('utf-8')
            reader = csv.DictReader(io.StringIO(decoded_file))

            created_count = 0
            with transaction.atomic():
                for row in reader:
                    subject_name = (row.get('subject') or 'General').strip()
                    subject, _ = Subject.objects.get_or_create(name=subject_name)

                    # 1. Create Question
                    question = Question.objects.create(
                        subject=subject,
                        text=row['question_text'],
                        question_type=(row.get('question_type') or 'mcq').lower(),
                        difficulty_level=(row.get('difficulty') or 'medium').lower(),
                        explanation=row.get('explanation') or '',
                        points=int(row.get('points') or 1)
                    )

                    # 2. Handle Options (for MCQs)
                    if question.question_type == Question.QuestionType.MCQ:
                        raw_options = (row.get('options') or '').split('|')
                        correct_ans_text = (row.get('correct_answer') or '').strip().lower()

                        for opt_text in raw_options:
                            clean_text = opt_text.strip()
                            if clean_text:
                                Option.objects.create(
                                    question=question,
                                    text=clean_text,
                                    is_correct=(clean_text.lower() == correct_ans_text)
                                )

                    created_count += 1

            return Response({"status": f"Successfully uploaded {created_count} questions"}, status=status.HTTP_201_CREATED)

        except (KeyError, ValueError, UnicodeDecodeError, DatabaseError) as e:
            logger.error(f"Question bulk upload failed: {e}")
            return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)


class SubjectViewSet(viewsets.ModelViewSet):
    queryset = Subject.objects.all().order_by('name')
    serializer_class = SubjectSerializer
    permission_classes = [IsInstructorOrAdmin]
