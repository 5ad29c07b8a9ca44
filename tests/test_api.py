from datetime import timedelta

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone

from assignments.models import ExamCandidateAssignment
from cores.models import AuditLog
from courses.models import CourseEnrollment
from exams.models import Exam, ExamQuestion

pytestmark = pytest.mark.django_db


def assignment_statuses(exam_id):
    return set(ExamCandidateAssignment.objects.filter(exam_id=exam_id).values_list('status', flat=True))


@pytest.fixture
def instructor_client(api_client, instructor):
    api_client.force_authenticate(instructor)
    return api_client


def test_instructor_creates_published_exam(instructor_client, course, candidates, enroll, bank):
    enroll(course, candidates[0], candidates[1])
    payload = {
        "title": "Midterm",
        "course": course.id,
        "time_limit": 30,
        "status": "published",
        "start_date": (timezone.now() - timedelta(hours=1)).isoformat(),
        "questions": [bank[2].id, bank[0].id],
    }

    response = instructor_client.post('/api/exams/', payload, format='json')

    assert response.status_code == 201
    exam_id = response.data['id']
    assert response.data['instructor'] == course.instructor_id
    assert response.data['total_questions'] == 2
    assert assignment_statuses(exam_id) == {"available"}
    assert ExamCandidateAssignment.objects.filter(exam_id=exam_id).count() == 2


def test_create_rejects_duplicate_questions(instructor_client, course, bank):
    payload = {"title": "Quiz", "course": course.id, "time_limit": 10, "questions": [bank[0].id, bank[0].id]}

    response = instructor_client.post('/api/exams/', payload, format='json')

    assert response.status_code == 400
    assert 'questions' in response.data
    assert not Exam.objects.exists()


def test_create_requires_pool_when_pool_is_enabled(instructor_client, course):
    payload = {"title": "Quiz", "course": course.id, "time_limit": 10, "use_question_pool": True}

    response = instructor_client.post('/api/exams/', payload, format='json')

    assert response.status_code == 400
    assert 'question_pool' in response.data


def test_candidate_cannot_create_exams(api_client, course, candidates):
    api_client.force_authenticate(candidates[0])

    response = api_client.post('/api/exams/', {"title": "x", "course": course.id, "time_limit": 5}, format='json')

    assert response.status_code == 403


def test_unpublishing_resets_assignments_to_pending(instructor_client, course, candidates, enroll, make_exam):
    enroll(course, candidates[0], candidates[1])
    exam = make_exam(status="published")
    for user in candidates[:2]:
        ExamCandidateAssignment.objects.create(exam=exam, candidate=user, status="available")

    response = instructor_client.patch(f'/api/exams/{exam.id}/', {"status": "draft"}, format='json')

    assert response.status_code == 200
    assert assignment_statuses(exam.id) == {"pending"}
    assert AuditLog.objects.filter(action=AuditLog.Action.PUBLISH, target_object_id=str(exam.id)).exists()


def test_assign_candidates_picks_up_late_enrollments(instructor_client, course, candidates, enroll, make_exam):
    u1, u2, _ = candidates
    enroll(course, u1)
    exam = make_exam(status="published")
    ExamCandidateAssignment.objects.create(exam=exam, candidate=u1, status="available")
    enroll(course, u2)

    response = instructor_client.post(f'/api/exams/{exam.id}/assign-candidates/')

    assert response.status_code == 200
    assert response.data['outcome'] == "assigned"
    assert response.data['created'] == 1
    assert ExamCandidateAssignment.objects.get(exam=exam, candidate=u2).status == "available"


def test_roster_lists_assigned_candidates(instructor_client, candidates, make_exam):
    exam = make_exam()
    ExamCandidateAssignment.objects.create(exam=exam, candidate=candidates[1], status="pending")
    ExamCandidateAssignment.objects.create(exam=exam, candidate=candidates[0], status="completed")

    response = instructor_client.get(f'/api/exams/{exam.id}/assignments/')
    completed = instructor_client.get(f'/api/exams/{exam.id}/assignments/', {'status': 'completed'})

    assert [row['candidate_email'] for row in response.data] == ["u1@example.com", "u2@example.com"]
    assert [row['candidate_email'] for row in completed.data] == ["u1@example.com"]


def test_assigned_candidate_sees_questions_without_answers(api_client, candidates, make_exam, bank):
    exam = make_exam(status="published")
    ExamQuestion.objects.create(exam=exam, question=bank[1], order_number=1)
    ExamQuestion.objects.create(exam=exam, question=bank[0], order_number=2)
    ExamCandidateAssignment.objects.create(exam=exam, candidate=candidates[0], status="available")
    api_client.force_authenticate(candidates[0])

    response = api_client.get(f'/api/exams/{exam.id}/')

    assert response.status_code == 200
    assert response.data['question_ids'] == [bank[1].id, bank[0].id]
    assert [q['id'] for q in response.data['questions']] == [bank[1].id, bank[0].id]
    assert all('is_correct' not in o for q in response.data['questions'] for o in q['options_data'])


def test_unassigned_candidate_gets_not_found(api_client, candidates, make_exam):
    exam = make_exam(status="published")
    api_client.force_authenticate(candidates[2])

    response = api_client.get(f'/api/exams/{exam.id}/')

    assert response.status_code == 404


@pytest.mark.parametrize("assignment_status", ["pending", "scheduled"])
def test_candidate_cannot_open_exam_before_it_is_available(api_client, candidates, make_exam, bank,
                                                          assignment_status):
    exam = make_exam()
    ExamQuestion.objects.create(exam=exam, question=bank[0], order_number=1)
    ExamCandidateAssignment.objects.create(exam=exam, candidate=candidates[0], status=assignment_status)
    api_client.force_authenticate(candidates[0])

    response = api_client.get(f'/api/exams/{exam.id}/')

    assert response.status_code == 404
    assert 'questions' not in response.data


def test_candidate_can_review_completed_exam(api_client, candidates, make_exam, bank):
    exam = make_exam(status="published")
    ExamQuestion.objects.create(exam=exam, question=bank[0], order_number=1)
    ExamCandidateAssignment.objects.create(exam=exam, candidate=candidates[0], status="completed")
    api_client.force_authenticate(candidates[0])

    response = api_client.get(f'/api/exams/{exam.id}/')

    assert response.status_code == 200
    assert response.data['question_ids'] == [bank[0].id]


def test_other_instructor_cannot_read_exam_or_roster(api_client, other_instructor, candidates, make_exam, bank):
    exam = make_exam(status="published")
    ExamQuestion.objects.create(exam=exam, question=bank[0], order_number=1)
    ExamCandidateAssignment.objects.create(exam=exam, candidate=candidates[0], status="available")
    api_client.force_authenticate(other_instructor)

    detail = api_client.get(f'/api/exams/{exam.id}/')
    roster = api_client.get(f'/api/exams/{exam.id}/assignments/')

    assert detail.status_code == 404
    assert 'questions' not in detail.data
    assert roster.status_code == 404


def test_staff_can_read_any_exam_and_roster(api_client, make_exam, bank):
    staff = get_user_model().objects.create_user(
        username="root@example.com", email="root@example.com", password="pass1234", is_staff=True
    )
    exam = make_exam()
    ExamQuestion.objects.create(exam=exam, question=bank[0], order_number=1)
    api_client.force_authenticate(staff)

    assert api_client.get(f'/api/exams/{exam.id}/').status_code == 200
    assert api_client.get(f'/api/exams/{exam.id}/assignments/').status_code == 200


def test_instructor_retrieves_exam_with_answer_key(instructor_client, make_exam, bank):
    exam = make_exam()
    ExamQuestion.objects.create(exam=exam, question=bank[0], order_number=1)

    response = instructor_client.get(f'/api/exams/{exam.id}/')

    assert response.status_code == 200
    options = response.data['questions'][0]['options_data']
    assert {o['text']: o['is_correct'] for o in options} == {"Right": True, "Wrong": False}


def test_course_enroll_endpoint(instructor_client, course, candidates):
    response = instructor_client.post(
        f'/api/courses/{course.id}/enroll/', {"emails": ["u1@example.com", "u3@example.com"]}, format='json'
    )

    assert response.status_code == 200
    assert sorted(response.data['enrolled']) == ["u1@example.com", "u3@example.com"]
    assert CourseEnrollment.objects.filter(course=course).count() == 2


def test_course_enroll_with_no_known_users(instructor_client, course):
    response = instructor_client.post(f'/api/courses/{course.id}/enroll/', {"emails": ["x@example.com"]}, format='json')

    assert response.status_code == 400
    assert response.data['error'] == "No valid users found for the provided emails"


def test_candidate_sees_enrolled_courses(api_client, course, candidates, enroll):
    enroll(course, candidates[0])
    api_client.force_authenticate(candidates[0])

    response = api_client.get('/api/courses/enrolled/')

    assert response.status_code == 200
    assert [c['title'] for c in response.data['results']] == ["Algebra"]


def test_notifications_feed_and_mark_read(instructor_client, course, bank):
    instructor_client.post(
        '/api/exams/', {"title": "Quiz", "course": course.id, "time_limit": 10, "questions": [bank[0].id]},
        format='json',
    )

    feed = instructor_client.get('/api/notifications/', {'unread': '1'})
    marked = instructor_client.post('/api/notifications/read/')
    after = instructor_client.get('/api/notifications/', {'unread': '1'})

    assert "Exam created successfully" in [n['message'] for n in feed.data['results']]
    assert marked.status_code == 200
    assert after.data['results'] == []
