from datetime import timedelta

from django.core.management import call_command
from django.db import DatabaseError
from django.test import RequestFactory
from django.utils import timezone

from mentoring import audit
from mentoring.models import ActivityLog, Notification
from mentoring.notifications import mark_notification_read, notify, unread_notifications
from mentoring.middleware import clear_current_request, set_current_request


def test_get_diff_lists_changed_fields_only():
    assert audit.get_diff({"a": 1, "b": 2}, {"a": 1, "b": 3, "c": 4}) == [
        {"field": "b", "old": 2, "new": 3},
        {"field": "c", "old": None, "new": 4},
    ]
    assert audit.get_diff(None, None) == []


def test_record_picks_up_request_metadata(mentor):
    request = RequestFactory().get("/mentor/reports/", HTTP_USER_AGENT="pytest",
                                   HTTP_X_FORWARDED_FOR="10.0.0.7, 10.0.0.1")
    set_current_request(request)
    try:
        entry = audit.record(mentor, "test", "audit", "details", old_data={"x": 1}, new_data={"x": 2})
    finally:
        clear_current_request()

    assert entry.ip_address == "10.0.0.7"
    assert entry.browser == "pytest"
    assert entry.request_path == "/mentor/reports/"
    assert entry.user == mentor


def test_record_outside_a_request(mentor):
    entry = audit.record(mentor, "test", "audit")
    assert entry.ip_address is None
    assert entry.request_path is None


def test_cleanup_activity_logs_respects_retention(mentor):
    old = audit.record(mentor, "old", "audit")
    ActivityLog.objects.filter(pk=old.pk).update(timestamp=timezone.now() - timedelta(days=40))
    fresh = audit.record(mentor, "fresh", "audit")

    call_command("cleanup_activity_logs", "--days", "30")

    assert list(ActivityLog.objects.values_list("pk", flat=True)) == [fresh.pk]


def test_notifications_inbox(mentor):
    note = notify(mentor, "Hello", "success")
    assert list(unread_notifications(mentor)) == [note]

    mark_notification_read(mentor, note.pk)
    assert list(unread_notifications(mentor)) == []


def test_notify_swallows_database_errors(mentor, monkeypatch):
    def broken(*args, **kwargs):
        raise DatabaseError("disk full")

    monkeypatch.setattr(Notification.objects, "create", broken)
    assert notify(mentor, "Hello") is None
    assert notify(None, "Nobody") is None

