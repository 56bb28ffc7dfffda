"""
Change feed over Django Channels.

Every mutation of a mentee record, grant, report or query is published as a
``ChangeEvent`` to the channel-layer group of its path (``reports/12`` ->
``feed.reports.12``). Websocket clients subscribe through ``ChangeFeedConsumer``;
``can_subscribe`` decides which paths a user may read.
"""
import logging
import re
from dataclasses import dataclass, field, asdict

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction
from django.db.models import Q

from .models import MenteeProfile, Query, Report

logger = logging.getLogger(__name__)

PATH_RE = re.compile(r"^(accounts|mentees|reports|queries|grants)/(\d+)$")


@dataclass
class ChangeEvent:
    path: str
    kind: str  # "created" | "updated"
    data: dict = field(default_factory=dict)

    def as_message(self):
        return {"type": "change_event", "event": asdict(self)}


def group_name(path):
    match = PATH_RE.match(path or "")
    if not match:
        raise ValueError(f"Unknown feed path: {path!r}")
    return f"feed.{match.group(1)}.{match.group(2)}"


def publish(path, kind, data=None):
    """Send the event once the surrounding transaction commits."""
    event = ChangeEvent(path=path, kind=kind, data=data or {})

    def _send():
        layer = get_channel_layer()
        if layer is None:
            return
        async_to_sync(layer.group_send)(group_name(path), event.as_message())
        logger.debug("feed %s %s", kind, path)

    transaction.on_commit(_send, robust=True)
    return event


def can_subscribe(user, path):
    match = PATH_RE.match(path or "")
    if not match or not getattr(user, "is_authenticated", False):
        return False
    collection, pk = match.group(1), int(match.group(2))

    if collection == "accounts":
        return user.pk == pk or user.is_admin_capable

    if collection in ("mentees", "grants"):
        if user.pk == pk or user.is_admin_capable:
            return True
        return MenteeProfile.objects.filter(pk=pk).filter(
            _supervised_by(user)
        ).exists()

    if collection == "reports":
        return Report.objects.filter(pk=pk).filter(
            _report_visible_to(user)
        ).exists()

    if collection == "queries":
        return Query.objects.filter(pk=pk).filter(
            _query_visible_to(user)
        ).exists()

    return False


def _supervised_by(user):
    return Q(primary_mentor=user) | Q(guide=user) | Q(co_guide=user)


def _report_visible_to(user):
    return Q(author=user) | Q(recipients__account=user)


def _query_visible_to(user):
    return Q(mentee=user) | Q(mentor=user)

