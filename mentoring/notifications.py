import logging

from django.db import DatabaseError, transaction
from django.shortcuts import get_object_or_404

from .models import Notification

logger = logging.getLogger(__name__)


def notify(user, message, severity="info"):
    """
    Fire-and-forget toast for `user`. Delivery problems are logged, never raised,
    so a failed notification cannot undo the operation that produced it.
    """
    if user is None:
        return None
    try:
        with transaction.atomic():
            return Notification.objects.create(user=user, message=message, severity=severity)
    except DatabaseError:
        logger.exception("Could not store notification for user %s", user.pk)
        return None


def unread_notifications(user):
    return Notification.objects.filter(user=user, is_read=False)


def mark_notification_read(user, notification_id):
    note = get_object_or_404(Notification, pk=notification_id, user=user)
    if not note.is_read:
        note.is_read = True
        note.save(update_fields=["is_read"])
    return note
