# examhub_platform/exams/models.py
from django.conf import settings
from django.db import models

class Subject(models.Model):
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)

    def __str__(self):
        return self.name

class Exam(models.Model):
    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        PUBLISHED = "published", "Published"

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    course = models.ForeignKey('courses.Course', related_name='exams', on_delete=models.CASCADE)
    instructor = models.ForeignKey(
        settings.AUTH_USER_MODEL, related_name='exams_created', on_delete=models.SET_NULL, null=True
    )

    time_limit = models.PositiveIntegerField(help_text="Minutes")
    passing_score = models.PositiveIntegerField(default=50)
    shuffle_questions = models.BooleanField(default=False)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)
    start_date = models.DateTimeField(null=True, blank=True)
    end_date = models.DateTimeField(null=True, blank=True)

    # Pool definition is kept exactly as submitted; it is resolved at creation/view time
    use_question_pool = models.BooleanField(default=False)
    question_pool = models.JSONField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'exams'

    @property
    def is_published(self):
        return self.status == self.Status.PUBLISHED

    def __str__(self):
        return self.title

class Question(models.Model):
    class QuestionType(models.TextChoices):
        MCQ = "mcq", "Multiple Choice"
        THEORY = "theory", "Open Ended"

    class Difficulty(models.TextChoices):
        EASY = "easy", "Easy"
        MEDIUM = "medium", "Medium"
        HARD = "hard", "Hard"

    # Bank questions are grouped by subject so pools can draw from them
    subject = models.ForeignKey(Subject, related_name='questions', on_delete=models.SET_NULL, null=True, blank=True)

    text = models.TextField()
    question_type = models.CharField(max_length=20, choices=QuestionType.choices, default=QuestionType.MCQ)
    difficulty_level = models.CharField(max_length=20, choices=Difficulty.choices, default=Difficulty.MEDIUM)
    explanation = models.TextField(blank=True)
    points = models.PositiveIntegerField(default=1)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'questions'

    def __str__(self):
        return f"{self.text[:50]}..."

class Option(models.Model):
    question = models.ForeignKey(Question, related_name='options', on_delete=models.CASCADE)
    text = models.CharField(max_length=255)
    is_correct = models.BooleanField(default=False)

    class Meta:
        db_table = 'question_options'

class ExamQuestion(models.Model):
    exam = models.ForeignKey(Exam, related_name='question_links', on_delete=models.CASCADE)
    question = models.ForeignKey(Question, related_name='exam_links', on_delete=models.CASCADE)
    order_number = models.PositiveIntegerField()

    class Meta:
        db_table = 'exam_questions'
        unique_together = ('exam', 'question')
        ordering = ['order_number']
