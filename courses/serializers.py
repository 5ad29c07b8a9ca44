from rest_framework import serializers
from .models import Course, CourseEnrollment

class CourseSerializer(serializers.ModelSerializer):
    instructor_email = serializers.CharField(source='instructor.email', read_only=True)
    enrolled_count = serializers.IntegerField(source='enrollments.count', read_only=True)

    class Meta:
        model = Course
        fields = [
            'id', 'title', 'description', 'instructor', 'instructor_email',
            'is_published', 'enrolled_count', 'created_at', 'updated_at'
        ]
        read_only_fields = ['instructor', 'created_at', 'updated_at']

class CourseEnrollmentSerializer(serializers.ModelSerializer):
    user_email = serializers.CharField(source='user.email', read_only=True)
    display_name = serializers.CharField(source='user.get_display_name', read_only=True)

    class Meta:
        model = CourseEnrollment
        fields = ['id', 'user', 'user_email', 'display_name', 'enrolled_at']

class EnrollParticipantsSerializer(serializers.Serializer):
    emails = serializers.ListField(child=serializers.CharField(allow_blank=True), allow_empty=True)
