from rest_framework import serializers
from django.contrib.auth import get_user_model
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

# Import models for aggregation
from assignments.models import ExamCandidateAssignment
from courses.models import CourseEnrollment

User = get_user_model()

class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'email', 'first_name', 'last_name', 'display_name', 'role', 'is_staff', 'bio', 'avatar']
        read_only_fields = ['is_staff']

class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True)

    class Meta:
        model = User
        fields = ['email', 'first_name', 'last_name', 'display_name', 'password', 'role']

    def create(self, validated_data):
        user = User.objects.create_user(
            username=validated_data['email'],
            email=validated_data['email'],
            password=validated_data['password'],
            first_name=validated_data.get('first_name', ''),
            last_name=validated_data.get('last_name', ''),
            display_name=validated_data.get('display_name', ''),
            role=validated_data.get('role', User.Role.CANDIDATE)
        )
        return user

class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        data['user'] = UserSerializer(self.user).data
        return data

class EligibleCandidateSerializer(serializers.ModelSerializer):
    """Row of the eligible-candidates listing instructors enroll from."""
    display_name = serializers.CharField(source='get_display_name', read_only=True)
    courses_enrolled = serializers.SerializerMethodField()
    exams_assigned = serializers.SerializerMethodField()
    exams_completed = serializers.SerializerMethodField()
    last_activity = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'email', 'display_name', 'courses_enrolled', 'exams_assigned', 'exams_completed', 'last_activity']

    def get_courses_enrolled(self, obj):
        return CourseEnrollment.objects.filter(user=obj).count()

    def get_exams_assigned(self, obj):
        return ExamCandidateAssignment.objects.filter(candidate=obj).count()

    def get_exams_completed(self, obj):
        return ExamCandidateAssignment.objects.filter(
            candidate=obj, status=ExamCandidateAssignment.Status.COMPLETED
        ).count()

    def get_last_activity(self, obj):
        last_assignment = ExamCandidateAssignment.objects.filter(candidate=obj).order_by('-assigned_at').first()
        if last_assignment:
            return last_assignment.assigned_at
        return obj.date_joined
