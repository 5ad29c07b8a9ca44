import logging

from django.db import DatabaseError, transaction

from .models import AuditLog

logger = logging.getLogger(__name__)


def record_audit(actor, action, target_model, target_object_id, details=""):
    """Store an audit entry from a service. A storage failure is logged, not raised."""
    try:
        with transaction.atomic():
            return AuditLog.objects.create(
                actor=actor,
                action=action,
                target_model=target_model,
                target_object_id=str(target_object_id),
                details=details
            )
    except DatabaseError as e:
        logger.error(f"Could not store audit entry {action} {target_model}#{target_object_id}: {e}")
        return None
