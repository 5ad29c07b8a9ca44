from django.urls import path
from .views import CandidateExamListView, CompleteAssignmentView, ExamAssignmentRosterView

urlpatterns = [
    # --- Candidate Exam List ---
    path('candidate/exams/', CandidateExamListView.as_view(), name='candidate-exams'),
    path('candidate/exams/<int:exam_id>/complete/', CompleteAssignmentView.as_view(), name='complete-exam'),

    # --- Instructor Roster ---
    path('exams/<int:exam_id>/assignments/', ExamAssignmentRosterView.as_view(), name='exam-assignments'),
]
