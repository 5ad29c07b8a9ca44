# examhub_platform/courses/models.py
from django.conf import settings
from django.db import models
from django.utils import timezone

class Course(models.Model):
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    instructor = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='courses_taught'
    )
    is_published = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'courses'

    def __str__(self):
        return self.title

class CourseEnrollment(models.Model):
    """A candidate's seat in a course. Created once, removed only on unenroll."""
    course = models.ForeignKey(Course, related_name='enrollments', on_delete=models.CASCADE)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, related_name='course_enrollments', on_delete=models.CASCADE)
    enrolled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, related_name='+', on_delete=models.SET_NULL, null=True, blank=True
    )
    enrolled_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'course_enrollments'
        unique_together = ('course', 'user')

    def __str__(self):
        return f"{self.user} - {self.course.title}"
