import logging

from django.db import DatabaseError, transaction

from .models import Notification

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    Notification.Level.SUCCESS: logging.INFO,
    Notification.Level.INFO: logging.INFO,
    Notification.Level.WARNING: logging.WARNING,
    Notification.Level.ERROR: logging.ERROR,
}


def notify(message, level=Notification.Level.INFO, recipient=None):
    """
    Side-channel sink for user-facing messages.
    Logs the message and stores it for the recipient's toast feed. A failure to
    store the notification is logged and never reaches the caller.
    """
    logger.log(_LOG_LEVELS.get(level, logging.INFO), message)

    if recipient is not None and not getattr(recipient, 'pk', None):
        recipient = None

    try:
        with transaction.atomic():
            return Notification.objects.create(recipient=recipient, level=level, message=message)
    except DatabaseError as e:
        logger.error(f"Could not store notification {message!r}: {e}")
        return None
