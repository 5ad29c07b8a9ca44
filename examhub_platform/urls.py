from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),

    # --- Authentication, Profiles, Candidates, Admin Stats ---
    path('api/', include('users.urls')),

    # --- Courses & Enrollment ---
    path('api/', include('courses.urls')),

    # --- Candidate Exam List & Instructor Roster ---
    path('api/', include('assignments.urls')),

    # --- Exams, Question Bank, Subjects ---
    path('api/', include('exams.urls')),

    # --- Notifications & Audit Logs ---
    path('api/', include('cores.urls')),
]
