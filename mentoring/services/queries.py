import logging

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.utils import timezone

from .. import feed
from ..exceptions import NoMentorAssigned, RoleMismatch
from ..models import MenteeProfile, Query
from ..notifications import notify

logger = logging.getLogger(__name__)


def ask(mentee, subject, question):
    """Question goes to whoever is the primary mentor right now."""
    if not mentee.is_mentee:
        raise RoleMismatch(mentee, "mentee")
    subject = (subject or "").strip()
    question = (question or "").strip()
    if not subject or not question:
        raise ValidationError("Subject and question are required.", code="required")

    profile = MenteeProfile.objects.select_related("primary_mentor").get(pk=mentee.pk)
    if profile.primary_mentor is None:
        raise NoMentorAssigned(mentee)

    with transaction.atomic():
        query = Query.objects.create(
            mentee=mentee,
            mentor=profile.primary_mentor,
            subject=subject,
            question=question,
        )
        feed.publish(f"queries/{query.pk}", "created", {"status": query.status})

    notify(query.mentor, f"New query from {mentee}: {subject}", "info")
    logger.info("Query %s asked by %s to %s", query.pk, mentee.pk, query.mentor_id)
    return query


def answer(query_id, mentor, text):
    """Pending -> answered on the first call; later calls only replace the text."""
    text = (text or "").strip()
    if not text:
        raise ValidationError("Answer cannot be empty.", code="required")

    with transaction.atomic():
        query = Query.objects.select_for_update().get(pk=query_id)
        if query.mentor_id != mentor.pk:
            raise PermissionDenied("Only the mentor this query was sent to can answer it.")
        first_answer = query.status == "pending"
        query.answer = text
        query.status = "answered"
        if first_answer:
            query.answered_at = timezone.now()
        query.save(update_fields=["answer", "status", "answered_at"])
        feed.publish(f"queries/{query.pk}", "updated", {"status": query.status})

    if first_answer:
        notify(query.mentee, f"Your query '{query.subject}' has been answered.", "success")
        logger.info("Query %s answered by %s", query.pk, mentor.pk)
    return query


def list_for_mentor(mentor, status=None):
    qs = Query.objects.filter(mentor=mentor).select_related("mentee")
    return qs.filter(status=status) if status else qs


def list_for_mentee(mentee):
    return Query.objects.filter(mentee=mentee).select_related("mentor")
