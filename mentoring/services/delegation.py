"""
Assignment & delegation graph over a mentee.

Three independent relations: the primary mentor (overwritten freely by an
admin) and the guide / co-guide slots. A slot can only be taken while it is
empty and only be released by its holder. Taking a slot is two-phase:
``verify_delegation`` shows who holds it, ``commit_delegation`` writes it.

Per slot and mentee:

    Empty        --commit(X)-->  Held(X)
    Held(X)      --release(X)--> Empty
    Held(X)      --commit(X)-->  Held(X)        (no-op)
    Held(X)      --commit(Y)-->  SlotOccupied(X)
"""
import enum
import logging
from dataclasses import dataclass
from typing import Optional

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import models, transaction
from django.db.models import Q

from .. import audit, feed
from ..exceptions import RoleMismatch, SlotOccupied
from ..models import Account, MenteeProfile
from ..notifications import notify

logger = logging.getLogger(__name__)


class Slot(models.TextChoices):
    GUIDE = "guide", "Guide"
    CO_GUIDE = "co_guide", "Co-Guide"


class Verification(enum.Enum):
    VERIFIED = "verified"
    ALREADY_HELD_BY_OTHER = "already_held_by_other"
    ALREADY_HELD_BY_SELF = "already_held_by_self"
    NOT_FOUND = "not_found"


@dataclass
class VerificationResult:
    outcome: Verification
    slot: str
    mentee: Optional[MenteeProfile] = None
    holder: Optional[Account] = None

    @property
    def ok(self):
        return self.outcome is Verification.VERIFIED

    @property
    def message(self):
        label = Slot(self.slot).label.lower()
        if self.outcome is Verification.NOT_FOUND:
            return "No mentee found with this email address"
        if self.outcome is Verification.ALREADY_HELD_BY_SELF:
            return f"You are already a {label} for this mentee"
        if self.outcome is Verification.ALREADY_HELD_BY_OTHER:
            return f"This mentee already has {self.holder} as {label}"
        return f"Mentee verified, confirm to become their {label}"


def _require_mentor(account):
    if not account.is_mentor:
        raise RoleMismatch(account, "mentor")


def _slot(value):
    try:
        return Slot(value)
    except ValueError:
        raise ValidationError(f"Unknown delegation slot: {value!r}", code="invalid_slot")


def mentee_profile(mentee_id):
    """The mentee record behind an account id; RoleMismatch for staff accounts."""
    account = Account.objects.get(pk=mentee_id)
    if not account.is_mentee:
        raise RoleMismatch(account, "mentee")
    return account.mentee_profile


def _snapshot(profile):
    return {
        "primary_mentor": profile.primary_mentor_id,
        "guide": profile.guide_id,
        "co_guide": profile.co_guide_id,
    }


def assign_primary_mentor(actor, mentee_id, mentor_id):
    """Unconditional overwrite of the primary mentor (None clears it)."""
    if not actor.is_admin_capable:
        raise PermissionDenied("Only admins can assign mentors.")

    mentor = None
    if mentor_id is not None:
        mentor = Account.objects.get(pk=mentor_id)
        _require_mentor(mentor)
    mentee_profile(mentee_id)

    with transaction.atomic():
        profile = MenteeProfile.objects.select_for_update().select_related("account").get(pk=mentee_id)
        old = _snapshot(profile)
        profile.primary_mentor = mentor
        profile.save(update_fields=["primary_mentor"])
        audit.record(actor, "assign_primary_mentor", "assignment",
                     f"{profile.account.email} -> {mentor.email if mentor else 'none'}",
                     old_data=old, new_data=_snapshot(profile))
        feed.publish(f"mentees/{profile.pk}", "updated", {"primary_mentor": mentor_id})

    if mentor is not None:
        notify(mentor, f"{profile.account} has been assigned to you as a mentee.", "info")
    logger.info("Primary mentor of %s set to %s by %s", mentee_id, mentor_id, actor.pk)
    return profile


def verify_delegation(mentor, mentee_email, slot):
    """First phase: resolve the mentee by email and report who holds the slot."""
    slot = _slot(slot)
    _require_mentor(mentor)
    profile = (MenteeProfile.objects
               .select_related("account", "guide", "co_guide")
               .filter(account__email__iexact=(mentee_email or "").strip())
               .first())
    if profile is None:
        return VerificationResult(Verification.NOT_FOUND, slot)

    holder = getattr(profile, slot.value)
    if holder is None:
        return VerificationResult(Verification.VERIFIED, slot, profile)
    if holder.pk == mentor.pk:
        return VerificationResult(Verification.ALREADY_HELD_BY_SELF, slot, profile, holder)
    return VerificationResult(Verification.ALREADY_HELD_BY_OTHER, slot, profile, holder)


def commit_delegation(mentee_id, mentor, slot):
    """
    Second phase: write the slot. Succeeds when the slot is empty or already
    held by ``mentor``; otherwise raises SlotOccupied without writing.
    The write is a conditional UPDATE, so two concurrent commits cannot both win.
    """
    slot = _slot(slot)
    _require_mentor(mentor)
    mentee_profile(mentee_id)
    field = slot.value

    with transaction.atomic():
        profile = MenteeProfile.objects.select_related("account").get(pk=mentee_id)
        previous = profile.holder_of(field)
        updated = (MenteeProfile.objects
                   .filter(pk=mentee_id)
                   .filter(Q(**{f"{field}__isnull": True}) | Q(**{field: mentor}))
                   .update(**{field: mentor}))
        if not updated:
            profile.refresh_from_db(fields=[field])
            holder = getattr(profile, field)
            logger.warning("Mentor %s tried to take %s of %s held by %s",
                           mentor.pk, field, mentee_id, getattr(holder, "pk", None))
            raise SlotOccupied(slot.label, holder)

        if previous == mentor.pk:
            return profile

        profile.refresh_from_db(fields=[field])
        audit.record(mentor, "commit_delegation", "delegation",
                     f"{profile.account.email}: {field} -> {mentor.email}",
                     old_data={field: None}, new_data={field: mentor.pk})
        feed.publish(f"mentees/{profile.pk}", "updated", {field: mentor.pk})

    notify(profile.account, f"{mentor} is now your {slot.label.lower()}.", "info")
    logger.info("Mentor %s took %s slot of %s", mentor.pk, field, mentee_id)
    return profile


def request_delegation(mentor, mentee_email, slot, confirm=None):
    """
    Runs both phases. ``confirm(result)`` is asked after a successful
    verification; the slot is written only when it returns true.
    """
    result = verify_delegation(mentor, mentee_email, slot)
    if not result.ok:
        return result
    if confirm is not None and not confirm(result):
        return result
    result.mentee = commit_delegation(result.mentee.pk, mentor, slot)
    return result


def release_delegation(mentee_id, mentor, slot):
    """Clear the slot if ``mentor`` holds it. Returns whether anything changed."""
    field = _slot(slot).value
    with transaction.atomic():
        released = MenteeProfile.objects.filter(pk=mentee_id, **{field: mentor}).update(**{field: None})
        if released:
            audit.record(mentor, "release_delegation", "delegation", f"mentee {mentee_id}: {field} released",
                         old_data={field: mentor.pk}, new_data={field: None})
            feed.publish(f"mentees/{mentee_id}", "updated", {field: None})
    if released:
        logger.info("Mentor %s released %s slot of %s", mentor.pk, field, mentee_id)
    return bool(released)


def list_guided_mentees(mentor):
    return (MenteeProfile.objects
            .filter(Q(guide=mentor) | Q(co_guide=mentor))
            .select_related("account", "class_group"))


def list_primary_mentees(mentor):
    return MenteeProfile.objects.filter(primary_mentor=mentor).select_related("account", "class_group")


def supervises(account, profile):
    return account.pk in (profile.primary_mentor_id, profile.guide_id, profile.co_guide_id)
