from rest_framework import generics, permissions, status, viewsets
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView
from django.contrib.auth import get_user_model

# Import models from other apps
from exams.models import Exam
from courses.models import Course
from assignments.models import ExamCandidateAssignment
from cores.models import AuditLog

from .permissions import IsInstructorOrAdmin
from .serializers import (
    RegisterSerializer,
    CustomTokenObtainPairSerializer,
    EligibleCandidateSerializer,
    UserSerializer
)

User = get_user_model()

# --- 1. User Management (CRUD for Admin) ---
class UserViewSet(viewsets.ModelViewSet):
    """
    Admin-only endpoint to manage all users.
    Every write is recorded in the audit log.
    """
    queryset = User.objects.all().order_by('-date_joined')
    permission_classes = [permissions.IsAdminUser]

    def get_serializer_class(self):
        if self.action == 'create':
            return RegisterSerializer
        return UserSerializer

    def perform_create(self, serializer):
        user = serializer.save()

        AuditLog.objects.create(
            actor=self.request.user,
            action=AuditLog.Action.CREATE,
            target_model='User',
            target_object_id=str(user.id),
            details=f"Created new user: {user.email} (Role: {user.role})"
        )

    def perform_update(self, serializer):
        user = serializer.save()
        # Handle password update if present
        if 'password' in self.request.data and self.request.data['password']:
            user.set_password(self.request.data['password'])
            user.save()

        AuditLog.objects.create(
            actor=self.request.user,
            action=AuditLog.Action.UPDATE,
            target_model='User',
            target_object_id=str(user.id),
            details=f"Updated profile for: {user.email}"
        )

    def perform_destroy(self, instance):
        AuditLog.objects.create(
            actor=self.request.user,
            action=AuditLog.Action.DELETE,
            target_model='User',
            target_object_id=str(instance.id),
            details=f"Deleted user account: {instance.email}"
        )
        instance.delete()

# --- 2. Authentication Views ---
class RegisterView(generics.CreateAPIView):
    serializer_class = RegisterSerializer
    permission_classes = [permissions.AllowAny]

    def perform_create(self, serializer):
        # Self-registration always yields a candidate account
        serializer.save(role=User.Role.CANDIDATE)

class CustomLoginView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer

# --- 3. Dashboard Stats ---
class AdminStatsView(APIView):
    permission_classes = [IsInstructorOrAdmin]

    def get(self, request):
        assignments = ExamCandidateAssignment.objects.all()
        stats = {
            "total_courses": Course.objects.count(),
            "total_exams": Exam.objects.count(),
            "total_candidates": User.objects.filter(role=User.Role.CANDIDATE).count(),
            "pending_assignments": assignments.filter(status=ExamCandidateAssignment.Status.PENDING).count(),
            "completed_assignments": assignments.filter(status=ExamCandidateAssignment.Status.COMPLETED).count(),
        }
        return Response(stats)

# --- 4. Eligible Candidates ---
class EligibleCandidateListView(generics.ListAPIView):
    """Candidates an instructor can enroll into a course (id, display name, email)."""
    serializer_class = EligibleCandidateSerializer
    permission_classes = [IsInstructorOrAdmin]

    def get_queryset(self):
        queryset = User.objects.filter(role=User.Role.CANDIDATE, is_active=True).order_by('email')
        search = self.request.query_params.get('search')
        if search:
            queryset = queryset.filter(email__icontains=search)
        return queryset

class UserProfileView(generics.RetrieveUpdateAPIView):
    serializer_class = UserSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_object(self):
        return self.request.user

class InstructorManagementView(generics.ListCreateAPIView):
    permission_classes = [permissions.IsAdminUser]
    serializer_class = RegisterSerializer

    def get_queryset(self):
        return User.objects.filter(role=User.Role.INSTRUCTOR)

    def create(self, request, *args, **kwargs):
        data = request.data.copy()
        data['role'] = User.Role.INSTRUCTOR

        serializer = self.get_serializer(data=data)
        serializer.is_valid(raise_exception=True)
        self.perform_create(serializer)

        headers = self.get_success_headers(serializer.data)
        return Response(serializer.data, status=status.HTTP_201_CREATED, headers=headers)
