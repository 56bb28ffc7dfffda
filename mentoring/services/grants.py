"""
Time-boxed, single-use profile edit permission.

A mentee may edit the locked profile fields iff ``now < expires_at`` and the
grant is not consumed. Every new grant replaces the previous one and resets
``consumed``; the first successful save consumes it.
"""
import logging
from datetime import timedelta

from django.conf import settings
from django.core.exceptions import PermissionDenied, ValidationError
from django.core.files.base import ContentFile
from django.db import transaction
from django.utils import timezone

from .. import audit, feed
from ..exceptions import EditWindowClosed, MentoringError, RoleMismatch
from ..models import Account, MenteeProfile, ProfileEditGrant
from ..notifications import notify
from .delegation import mentee_profile, supervises

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("display_name", "phone", "parent_mobile", "photo")


def _default_hours():
    return getattr(settings, "MENTORING_DEFAULT_GRANT_HOURS", 24)


def grant(mentee_id, duration_hours=None, granted_by=None, now=None):
    """Write a fresh grant: allowed_at=now, expires_at=now+duration, consumed=False."""
    if duration_hours is None:
        duration_hours = _default_hours()
    if duration_hours < 0:
        raise ValidationError("Duration cannot be negative.", code="invalid_duration")

    profile = mentee_profile(mentee_id)
    if granted_by is None or not (granted_by.is_admin_capable or supervises(granted_by, profile)):
        raise PermissionDenied("Only the mentee's mentors or an admin can allow profile edits.")

    now = now or timezone.now()
    with transaction.atomic():
        edit_grant, _ = ProfileEditGrant.objects.update_or_create(
            mentee=profile,
            defaults={
                "allowed_at": now,
                "expires_at": now + timedelta(hours=duration_hours),
                "allowed_by": granted_by,
                "consumed": False,
            },
        )
        audit.record(granted_by, "grant_profile_edit", "grants",
                     f"{profile.account.email} for {duration_hours}h",
                     new_data={"expires_at": edit_grant.expires_at.isoformat()})
        feed.publish(f"grants/{profile.pk}", "updated",
                     {"expires_at": edit_grant.expires_at.isoformat(), "consumed": False})

    if duration_hours:
        notify(profile.account, f"You can edit your profile until {edit_grant.expires_at:%d-%m-%Y %H:%M}.", "info")
    logger.info("Edit grant for %s by %s, %sh", mentee_id, granted_by.pk, duration_hours)
    return edit_grant


def bulk_grant(mentee_ids, duration_hours=None, granted_by=None, now=None):
    """
    One independent grant per mentee. A failure on one mentee does not roll
    back the others; the result maps each id to its grant or its error.
    """
    outcomes = {}
    for mentee_id in mentee_ids:
        try:
            outcomes[mentee_id] = grant(mentee_id, duration_hours, granted_by, now=now)
        except (MentoringError, PermissionDenied, ValidationError, Account.DoesNotExist) as exc:
            logger.warning("Bulk grant skipped mentee %s: %s", mentee_id, exc)
            outcomes[mentee_id] = exc
    return outcomes


def is_editable(mentee_id, now=None):
    edit_grant = ProfileEditGrant.objects.filter(mentee_id=mentee_id).first()
    return bool(edit_grant and edit_grant.is_active(now))


def consume(mentee_id):
    """Mark the grant used. Calling it again is a no-op."""
    consumed = ProfileEditGrant.objects.filter(mentee_id=mentee_id, consumed=False).update(consumed=True)
    if consumed:
        feed.publish(f"grants/{mentee_id}", "updated", {"consumed": True})
        logger.info("Edit grant of %s consumed", mentee_id)
    return bool(consumed)


def save_profile_edit(mentee, changes, now=None):
    """
    Apply locked-field changes for ``mentee`` and consume the grant in one
    transaction. ``photo`` may be raw bytes or an uploaded file.
    """
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Fields not editable: {', '.join(sorted(unknown))}", code="invalid_field")
    if not mentee.is_mentee:
        raise RoleMismatch(mentee, "mentee")

    now = now or timezone.now()
    with transaction.atomic():
        edit_grant = (ProfileEditGrant.objects
                      .select_for_update()
                      .filter(mentee_id=mentee.pk)
                      .first())
        if edit_grant is None or not edit_grant.is_active(now):
            logger.warning("Profile edit by %s rejected: no active grant", mentee.pk)
            raise EditWindowClosed("Profile editing is locked. Ask your mentor for permission.")

        profile = MenteeProfile.objects.select_for_update().get(pk=mentee.pk)
        old = {"display_name": mentee.display_name, "phone": profile.phone, "parent_mobile": profile.parent_mobile}

        if "display_name" in changes:
            mentee.display_name = (changes["display_name"] or "").strip()
            mentee.save(update_fields=["display_name"])
        for field in ("phone", "parent_mobile"):
            if field in changes:
                setattr(profile, field, (changes[field] or "").strip())
        photo = changes.get("photo")
        if photo is not None:
            if isinstance(photo, bytes):
                photo = ContentFile(photo, name=f"mentee_{mentee.pk}.png")
            profile.photo.save(photo.name, photo, save=False)
        profile.save()

        edit_grant.consumed = True
        edit_grant.save(update_fields=["consumed"])
        audit.record(mentee, "profile_edit", "grants", "Locked profile fields edited", old_data=old,
                     new_data={"display_name": mentee.display_name, "phone": profile.phone,
                               "parent_mobile": profile.parent_mobile})
        feed.publish(f"grants/{mentee.pk}", "updated", {"consumed": True})
        feed.publish(f"mentees/{mentee.pk}", "updated", {"profile": "edited"})

    notify(edit_grant.allowed_by, f"{mentee} has updated their profile.", "info")
    return profile
