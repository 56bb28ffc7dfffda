from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from asgiref.sync import async_to_sync
from channels.db import database_sync_to_async
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser

from mentoring import feed
from mentoring.consumers import ChangeFeedConsumer
from mentoring.exceptions import SlotOccupied
from mentoring.models import MenteeProfile
from mentoring.services import delegation, queries, reports
from mentoring.services.delegation import Slot


def test_group_name_maps_paths():
    assert feed.group_name("reports/12") == "feed.reports.12"
    with pytest.raises(ValueError):
        feed.group_name("reports/../../x")


def test_event_message_shape():
    event = feed.ChangeEvent("queries/3", "updated", {"status": "answered"})
    assert event.as_message() == {
        "type": "change_event",
        "event": {"path": "queries/3", "kind": "updated", "data": {"status": "answered"}},
    }


@pytest.fixture
def layer():
    fake = MagicMock()
    fake.group_send = AsyncMock()
    with patch("mentoring.feed.get_channel_layer", return_value=fake):
        yield fake


def test_publish_waits_for_commit(layer, django_capture_on_commit_callbacks, other_mentor, mentee):
    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        delegation.commit_delegation(mentee.pk, other_mentor, Slot.GUIDE)
        layer.group_send.assert_not_called()

    assert len(callbacks) == 1
    group, message = layer.group_send.call_args.args
    assert group == f"feed.mentees.{mentee.pk}"
    assert message["event"]["data"] == {"guide": other_mentor.pk}


def test_broken_channel_layer_does_not_fail_the_write(layer, django_capture_on_commit_callbacks, other_mentor, mentee):
    layer.group_send.side_effect = RuntimeError("layer down")
    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        profile = delegation.commit_delegation(mentee.pk, other_mentor, Slot.GUIDE)

    assert len(callbacks) == 1
    layer.group_send.assert_called_once()
    assert profile.guide == other_mentor
    assert MenteeProfile.objects.get(pk=mentee.pk).guide == other_mentor


def test_failed_commit_publishes_nothing(layer, django_capture_on_commit_callbacks, mentor, other_mentor, mentee):
    delegation.commit_delegation(mentee.pk, other_mentor, Slot.GUIDE)
    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        with pytest.raises(SlotOccupied):
            delegation.commit_delegation(mentee.pk, mentor, Slot.GUIDE)
    assert callbacks == []


def test_can_subscribe_rules(admin_account, mentor, other_mentor, mentee, make_account):
    report = reports.submit(mentee, "Draft", "", "", {"mentor"})
    query = queries.ask(mentee, "Exams", "When?")
    outsider = make_account("mentee")

    assert feed.can_subscribe(mentee, f"accounts/{mentee.pk}")
    assert not feed.can_subscribe(mentee, f"accounts/{mentor.pk}")
    assert feed.can_subscribe(admin_account, f"accounts/{mentor.pk}")

    assert feed.can_subscribe(mentor, f"mentees/{mentee.pk}")
    assert feed.can_subscribe(mentor, f"grants/{mentee.pk}")
    assert not feed.can_subscribe(other_mentor, f"mentees/{mentee.pk}")

    assert feed.can_subscribe(mentor, f"reports/{report.pk}")
    assert feed.can_subscribe(mentee, f"reports/{report.pk}")
    assert not feed.can_subscribe(outsider, f"reports/{report.pk}")

    assert feed.can_subscribe(mentor, f"queries/{query.pk}")
    assert not feed.can_subscribe(other_mentor, f"queries/{query.pk}")

    assert not feed.can_subscribe(mentor, "bogus/1")


@pytest.mark.django_db(transaction=True)
def test_consumer_delivers_events_for_subscribed_paths(make_account):
    mentor = make_account("mentor")
    other = make_account("mentor")
    kid = make_account("mentee")
    profile = kid.mentee_profile
    profile.primary_mentor = mentor
    profile.save()

    async def scenario():
        communicator = WebsocketCommunicator(ChangeFeedConsumer.as_asgi(), "/ws/feed/")
        communicator.scope["user"] = mentor
        connected, _ = await communicator.connect()
        assert connected

        await communicator.send_json_to({"action": "subscribe", "path": f"mentees/{kid.pk}"})
        assert await communicator.receive_json_from() == {"action": "subscribed", "path": f"mentees/{kid.pk}"}

        await communicator.send_json_to({"action": "subscribe", "path": "reports/999"})
        assert (await communicator.receive_json_from())["action"] == "denied"

        await database_sync_to_async(delegation.commit_delegation)(kid.pk, other, Slot.CO_GUIDE)

        message = await communicator.receive_json_from(timeout=2)
        assert message["action"] == "change"
        assert message["event"]["path"] == f"mentees/{kid.pk}"
        assert message["event"]["data"] == {"co_guide": other.pk}

        await communicator.disconnect()

    async_to_sync(scenario)()


def test_anonymous_socket_is_refused():
    async def scenario():
        communicator = WebsocketCommunicator(ChangeFeedConsumer.as_asgi(), "/ws/feed/")
        communicator.scope["user"] = AnonymousUser()
        connected, code = await communicator.connect()
        assert not connected
        assert code == 4401

    async_to_sync(scenario)()
