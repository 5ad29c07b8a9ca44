from django.contrib import admin

# Register your models here.
from .models import Exam, ExamQuestion, Question, Option, Subject

admin.site.register(Exam)
admin.site.register(ExamQuestion)
admin.site.register(Question)
admin.site.register(Option)
admin.site.register(Subject)
