from rest_framework import viewsets, generics, permissions, status, filters
from rest_framework.decorators import action
from rest_framework.response import Response

from users.permissions import IsInstructorOrAdmin
from .models import Course, CourseEnrollment
from .serializers import CourseSerializer, CourseEnrollmentSerializer, EnrollParticipantsSerializer
from .services import enroll_participants, get_enrolled_courses

class CourseViewSet(viewsets.ModelViewSet):
    serializer_class = CourseSerializer
    permission_classes = [IsInstructorOrAdmin]

    filter_backends = [filters.SearchFilter]
    search_fields = ['title', 'description']

    def get_queryset(self):
        queryset = Course.objects.select_related('instructor').order_by('-created_at')
        # Instructors manage their own courses; staff see everything
        if not self.request.user.is_staff:
            queryset = queryset.filter(instructor=self.request.user)
        return queryset

    def perform_create(self, serializer):
        serializer.save(instructor=self.request.user)

    @action(detail=True, methods=['post'], url_path='enroll')
    def enroll(self, request, pk=None):
        """
        Enrolls participants by email.
        Payload: { "emails": ["a@example.com", "b@example.com"] }
        """
        course = self.get_object()
        serializer = EnrollParticipantsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = enroll_participants(course, serializer.validated_data['emails'], enrolled_by=request.user)
        if not result.success:
            return Response({"error": result.message}, status=status.HTTP_400_BAD_REQUEST)
        return Response({"status": result.message, "enrolled": [u.email for u in result.enrolled]})

    @action(detail=True, methods=['get'], url_path='enrollments')
    def enrollments(self, request, pk=None):
        course = self.get_object()
        rows = CourseEnrollment.objects.filter(course=course).select_related('user').order_by('enrolled_at')
        return Response(CourseEnrollmentSerializer(rows, many=True).data)

class EnrolledCourseListView(generics.ListAPIView):
    """Courses the logged-in candidate is enrolled in."""
    serializer_class = CourseSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return get_enrolled_courses(self.request.user)
