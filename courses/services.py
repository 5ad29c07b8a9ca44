import logging
from dataclasses import dataclass, field

from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction
from django.db.models import Q

from cores.audit import record_audit
from cores.models import AuditLog, Notification
from cores.notifications import notify

from .models import Course, CourseEnrollment

logger = logging.getLogger(__name__)

User = get_user_model()


@dataclass
class EnrollmentResult:
    success: bool
    message: str = ""
    enrolled: list = field(default_factory=list)


def _normalize_emails(emails):
    cleaned = []
    for email in emails or []:
        email = (email or "").strip().lower()
        if email and email not in cleaned:
            cleaned.append(email)
    return cleaned


def enroll_participants(course, emails, enrolled_by=None):
    """
    Enroll the users owning `emails` into `course`.
    Existing enrollments are left as they are; unknown emails are skipped.
    """
    emails = _normalize_emails(emails)
    if not emails:
        return EnrollmentResult(success=False, message="No emails provided for enrollment")

    try:
        email_filter = Q()
        for email in emails:
            email_filter |= Q(email__iexact=email)
        users = list(User.objects.filter(email_filter, is_active=True).order_by('id'))

        if not users:
            return EnrollmentResult(success=False, message="No valid users found for the provided emails")

        found = {u.email.lower() for u in users}
        missing = [e for e in emails if e not in found]
        if missing:
            logger.info(f"Skipping {len(missing)} unknown email(s) for course {course.id}: {missing}")

        rows = [
            CourseEnrollment(course=course, user=user, enrolled_by=enrolled_by)
            for user in users
        ]
        with transaction.atomic():
            CourseEnrollment.objects.bulk_create(rows, ignore_conflicts=True)
    except DatabaseError as e:
        logger.error(f"Error enrolling participants into course {course.id}: {e}")
        notify("Failed to enroll participants", Notification.Level.ERROR, enrolled_by)
        return EnrollmentResult(success=False, message=str(e))

    message = f"Successfully enrolled {len(users)} participant(s)"
    if enrolled_by is not None:
        record_audit(
            enrolled_by, AuditLog.Action.ENROLL, 'Course', course.id,
            f"{message}: {', '.join(u.email for u in users)}"
        )
    notify(message, Notification.Level.SUCCESS, enrolled_by)
    return EnrollmentResult(success=True, message=message, enrolled=users)


def get_enrolled_courses(user):
    """Courses the user holds an enrollment in, newest enrollment first."""
    if user is None or not user.is_authenticated:
        return Course.objects.none()
    return (
        Course.objects
        .filter(enrollments__user=user)
        .select_related('instructor')
        .order_by('-enrollments__enrolled_at')
    )
