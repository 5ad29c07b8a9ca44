# examhub_platform/exams/serializers.py
from rest_framework import serializers

from courses.models import Course
from .models import Exam, Question, Option, Subject

# --- Helper Serializers ---

class OptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Option
        fields = ['id', 'text', 'is_correct']

class CandidateOptionSerializer(serializers.ModelSerializer):
    """Options without the answer key, for candidates."""
    class Meta:
        model = Option
        fields = ['id', 'text']

class SubjectSerializer(serializers.ModelSerializer):
    question_count = serializers.IntegerField(source='questions.count', read_only=True)

    class Meta:
        model = Subject
        fields = ['id', 'name', 'description', 'question_count']

# --- Question Serializers ---

class QuestionSerializer(serializers.ModelSerializer):
    # Map frontend 'question_text' to backend 'text'
    question_text = serializers.CharField(source='text')
    # Map frontend options array (strings) to backend Options models
    options = serializers.ListField(child=serializers.CharField(), required=False, write_only=True)
    correct_answer = serializers.CharField(required=False, allow_blank=True, write_only=True)
    options_data = OptionSerializer(source='options', many=True, read_only=True)

    subject_name = serializers.CharField(source='subject.name', read_only=True)

    class Meta:
        model = Question
        fields = [
            'id', 'subject', 'subject_name', 'question_text', 'question_type',
            'difficulty_level', 'explanation', 'points', 'correct_answer',
            'options', 'options_data', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']

    def create(self, validated_data):
        options_text = validated_data.pop('options', [])
        correct_ans = validated_data.pop('correct_answer', '')

        question = Question.objects.create(**validated_data)

        # Simple logic: if option text matches correct_answer, mark it true
        for opt_text in options_text:
            is_correct = (opt_text.strip().lower() == correct_ans.strip().lower())
            Option.objects.create(question=question, text=opt_text, is_correct=is_correct)

        return question

    def update(self, instance, validated_data):
        options_text = validated_data.pop('options', None)
        correct_ans = validated_data.pop('correct_answer', '')
        instance = super().update(instance, validated_data)

        if options_text is not None:
            instance.options.all().delete()
            for opt_text in options_text:
                is_correct = (opt_text.strip().lower() == correct_ans.strip().lower())
                Option.objects.create(question=instance, text=opt_text, is_correct=is_correct)
        return instance

class CandidateQuestionSerializer(serializers.ModelSerializer):
    question_text = serializers.CharField(source='text', read_only=True)
    options_data = CandidateOptionSerializer(source='options', many=True, read_only=True)

    class Meta:
        model = Question
        fields = ['id', 'question_text', 'question_type', 'points', 'options_data']

# --- Question Pool ---

class PoolSubjectSerializer(serializers.Serializer):
    subject_id = serializers.IntegerField()
    count = serializers.IntegerField(min_value=0)

class QuestionPoolSerializer(serializers.Serializer):
    subjects = PoolSubjectSerializer(many=True, allow_empty=False)
    total_questions = serializers.IntegerField(min_value=1, required=False, allow_null=True)

    def validate_subjects(self, value):
        ids = [entry['subject_id'] for entry in value]
        known = set(Subject.objects.filter(id__in=ids).values_list('id', flat=True))
        unknown = [i for i in ids if i not in known]
        if unknown:
            raise serializers.ValidationError(f"Unknown subject ids: {unknown}")
        return value

# --- Exam Serializers ---

class ExamSerializer(serializers.ModelSerializer):
    course_title = serializers.CharField(source='course.title', read_only=True)
    is_published = serializers.BooleanField(read_only=True)

    # Read-only counts
    total_questions = serializers.IntegerField(source='question_links.count', read_only=True)

    class Meta:
        model = Exam
        fields = [
            'id', 'title', 'description', 'course', 'course_title', 'instructor',
            'time_limit', 'passing_score', 'shuffle_questions', 'status', 'is_published',
            'start_date', 'end_date', 'use_question_pool', 'question_pool',
            'total_questions', 'created_at', 'updated_at'
        ]
        # Course and question selection are fixed once the exam exists
        read_only_fields = [
            'course', 'instructor', 'use_question_pool', 'question_pool', 'created_at', 'updated_at'
        ]

    def validate(self, attrs):
        start_date = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end_date = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start_date and end_date and end_date < start_date:
            raise serializers.ValidationError({"end_date": "End date must be after the start date."})
        return attrs

class ExamCreateSerializer(serializers.Serializer):
    """Exam form as submitted by the instructor."""
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    course = serializers.PrimaryKeyRelatedField(queryset=Course.objects.all())
    time_limit = serializers.IntegerField(min_value=1)
    passing_score = serializers.IntegerField(min_value=0, max_value=100, default=50)
    shuffle_questions = serializers.BooleanField(default=False)
    status = serializers.ChoiceField(choices=Exam.Status.choices, default=Exam.Status.DRAFT)
    start_date = serializers.DateTimeField(required=False, allow_null=True, default=None)
    end_date = serializers.DateTimeField(required=False, allow_null=True, default=None)
    use_question_pool = serializers.BooleanField(default=False)
    question_pool = QuestionPoolSerializer(required=False, allow_null=True, default=None)
    questions = serializers.PrimaryKeyRelatedField(
        queryset=Question.objects.all(), many=True, required=False
    )

    def validate_course(self, course):
        request = self.context.get('request')
        if request is not None and not request.user.is_staff and course.instructor_id != request.user.id:
            raise serializers.ValidationError("You can only create exams for your own courses.")
        return course

    def validate_questions(self, questions):
        ids = [q.id for q in questions]
        if len(ids) != len(set(ids)):
            raise serializers.ValidationError("Each question can only appear once.")
        return ids

    def validate(self, attrs):
        if attrs['use_question_pool'] and not attrs.get('question_pool'):
            raise serializers.ValidationError({"question_pool": "A question pool is required when using a pool."})
        if not attrs['use_question_pool']:
            attrs['question_pool'] = None
        start_date, end_date = attrs.get('start_date'), attrs.get('end_date')
        if start_date and end_date and end_date < start_date:
            raise serializers.ValidationError({"end_date": "End date must be after the start date."})
        return attrs
