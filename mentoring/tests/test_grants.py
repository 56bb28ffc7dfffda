import io
from datetime import timedelta

import pytest
from django.core.exceptions import PermissionDenied, ValidationError
from PIL import Image

from mentoring.exceptions import EditWindowClosed, RoleMismatch
from mentoring.models import ActivityLog, MenteeProfile, ProfileEditGrant
from mentoring.services import grants


def test_grant_writes_fresh_window(mentor, mentee, now):
    edit_grant = grants.grant(mentee.pk, 24, granted_by=mentor, now=now)
    assert edit_grant.allowed_at == now
    assert edit_grant.expires_at == now + timedelta(hours=24)
    assert edit_grant.consumed is False
    assert edit_grant.allowed_by == mentor
    assert grants.is_editable(mentee.pk, now + timedelta(hours=1))


def test_default_duration_comes_from_settings(settings, mentor, mentee, now):
    settings.MENTORING_DEFAULT_GRANT_HOURS = 2
    edit_grant = grants.grant(mentee.pk, granted_by=mentor, now=now)
    assert edit_grant.expires_at == now + timedelta(hours=2)


def test_zero_duration_is_never_editable(mentor, mentee, now):
    grants.grant(mentee.pk, 0, granted_by=mentor, now=now)
    assert not grants.is_editable(mentee.pk, now)


def test_no_grant_means_locked(mentee, now):
    assert not grants.is_editable(mentee.pk, now)


def test_grant_rejects_non_mentee_and_negative_duration(mentor, other_mentor, mentee, now):
    with pytest.raises(RoleMismatch):
        grants.grant(other_mentor.pk, 24, granted_by=mentor, now=now)
    with pytest.raises(ValidationError):
        grants.grant(mentee.pk, -1, granted_by=mentor, now=now)


def test_only_supervisors_or_admins_may_grant(admin_account, other_mentor, mentee, now):
    with pytest.raises(PermissionDenied):
        grants.grant(mentee.pk, 24, granted_by=other_mentor, now=now)
    assert grants.grant(mentee.pk, 24, granted_by=admin_account, now=now).allowed_by == admin_account


def test_edit_consumes_window_then_expiry_locks(mentor, mentee, now):
    grants.grant(mentee.pk, 24, granted_by=mentor, now=now)

    profile = grants.save_profile_edit(mentee, {"phone": " 5550001 ", "display_name": "New Name"},
                                       now=now + timedelta(hours=1))
    assert profile.phone == "5550001"
    mentee.refresh_from_db()
    assert mentee.display_name == "New Name"
    assert ProfileEditGrant.objects.get(pk=mentee.pk).consumed

    with pytest.raises(EditWindowClosed):
        grants.save_profile_edit(mentee, {"phone": "999"}, now=now + timedelta(hours=2))
    assert MenteeProfile.objects.get(pk=mentee.pk).phone == "5550001"

    # expiry and consumption are independent ways to lock
    assert not grants.is_editable(mentee.pk, now + timedelta(hours=25))
    assert ActivityLog.objects.filter(action="profile_edit", user=mentee).count() == 1


def test_expired_unconsumed_window_is_locked(mentor, mentee, now):
    grants.grant(mentee.pk, 24, granted_by=mentor, now=now)
    assert not grants.is_editable(mentee.pk, now + timedelta(hours=25))
    assert not ProfileEditGrant.objects.get(pk=mentee.pk).consumed
    with pytest.raises(EditWindowClosed):
        grants.save_profile_edit(mentee, {"phone": "1"}, now=now + timedelta(hours=25))


def test_consume_is_idempotent(mentor, mentee, now):
    grants.grant(mentee.pk, 24, granted_by=mentor, now=now)
    assert grants.consume(mentee.pk) is True
    assert grants.consume(mentee.pk) is False
    assert not grants.is_editable(mentee.pk, now)


def test_new_grant_resets_consumed(mentor, mentee, now):
    grants.grant(mentee.pk, 24, granted_by=mentor, now=now)
    grants.consume(mentee.pk)
    grants.grant(mentee.pk, 1, granted_by=mentor, now=now)
    assert grants.is_editable(mentee.pk, now)
    assert ProfileEditGrant.objects.filter(mentee_id=mentee.pk).count() == 1


def test_locked_fields_only(mentor, mentee, now):
    grants.grant(mentee.pk, 24, granted_by=mentor, now=now)
    with pytest.raises(ValidationError):
        grants.save_profile_edit(mentee, {"enrollment_no": "999"}, now=now)
    assert grants.is_editable(mentee.pk, now)


def test_bulk_grant_is_independent_per_mentee(mentor, mentee, other_mentor, make_account, now):
    stranger = make_account("mentee")
    outcomes = grants.bulk_grant([mentee.pk, other_mentor.pk, stranger.pk, 99999], 12, granted_by=mentor, now=now)

    assert isinstance(outcomes[mentee.pk], ProfileEditGrant)
    assert isinstance(outcomes[other_mentor.pk], RoleMismatch)
    assert isinstance(outcomes[stranger.pk], PermissionDenied)
    assert isinstance(outcomes[99999], Exception)
    assert grants.is_editable(mentee.pk, now)
    assert not grants.is_editable(stranger.pk, now)


def test_photo_is_stored_and_thumbnailed(settings, tmp_path, mentor, mentee, now):
    settings.MEDIA_ROOT = tmp_path
    buffer = io.BytesIO()
    Image.new("RGB", (800, 600), "blue").save(buffer, format="PNG")

    grants.grant(mentee.pk, 24, granted_by=mentor, now=now)
    profile = grants.save_profile_edit(mentee, {"photo": buffer.getvalue()}, now=now)

    assert profile.photo.name.startswith("profile_pics/")
    with Image.open(profile.photo.path) as img:
        assert max(img.size) <= 300
