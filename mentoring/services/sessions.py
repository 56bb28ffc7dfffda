import logging

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from ..exceptions import RoleMismatch
from ..models import MenteeProfile, MentoringSession
from ..notifications import notify

logger = logging.getLogger(__name__)


def schedule_session(mentor, topic, scheduled_for, mentee_ids, description="", meeting_link="",
                     duration_minutes=60):
    """Mentor schedules a session with mentees they supervise in any slot."""
    if not mentor.is_mentor:
        raise RoleMismatch(mentor, "mentor")
    topic = (topic or "").strip()
    if not topic:
        raise ValidationError("Topic is required.", code="required")
    mentee_ids = set(mentee_ids or [])
    if not mentee_ids:
        raise ValidationError("Please select at least one mentee", code="required")
    if timezone.is_naive(scheduled_for):
        scheduled_for = timezone.make_aware(scheduled_for, timezone.get_current_timezone())

    supervised = set(
        MenteeProfile.objects
        .filter(pk__in=mentee_ids)
        .filter(Q(primary_mentor=mentor) | Q(guide=mentor) | Q(co_guide=mentor))
        .values_list("pk", flat=True)
    )
    outsiders = mentee_ids - supervised
    if outsiders:
        raise PermissionDenied(f"Not your mentees: {sorted(outsiders)}")

    with transaction.atomic():
        session = MentoringSession.objects.create(
            mentor=mentor,
            topic=topic,
            description=description or "",
            scheduled_for=scheduled_for,
            duration_minutes=duration_minutes,
            meeting_link=meeting_link or "",
        )
        session.mentees.set(supervised)

    for profile in MenteeProfile.objects.filter(pk__in=supervised).select_related("account"):
        notify(profile.account, f"New session '{topic}' on {scheduled_for:%d-%m-%Y %H:%M}", "info")
    logger.info("Mentor %s scheduled session %s with %d mentees", mentor.pk, session.pk, len(supervised))
    return session


def upcoming_sessions(account, now=None):
    now = now or timezone.now()
    qs = MentoringSession.objects.filter(scheduled_for__gte=now, status="scheduled")
    if account.is_mentee:
        return qs.filter(mentees=account)
    return qs.filter(mentor=account)
