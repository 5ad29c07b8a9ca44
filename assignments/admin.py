from django.contrib import admin

from .models import ExamCandidateAssignment

admin.site.register(ExamCandidateAssignment)
