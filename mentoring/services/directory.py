"""
Identity directory: account creation, lookup and the Mentor <-> Admin+Mentor toggle.

There is no public self-registration. Admins create mentors and admins; mentors
(and admins) create mentees through ``create_mentee``, which also performs the
enrollment-number uniqueness check the directory itself does not do.
"""
import logging

from django.conf import settings
from django.core.exceptions import PermissionDenied, ValidationError
from django.core.files.base import ContentFile
from django.core.validators import validate_email
from django.db import transaction

from .. import audit, feed
from ..exceptions import DuplicateEnrollment, RoleMismatch
from ..models import Account, MenteeProfile, Role
from . import delegation

logger = logging.getLogger(__name__)


def _min_password_length():
    return getattr(settings, "MENTORING_MIN_PASSWORD_LENGTH", 6)


def validate_credentials(email, password):
    email = (email or "").strip()
    try:
        validate_email(email)
    except ValidationError:
        raise ValidationError("Please enter a valid email address.", code="invalid_email")
    if len(password or "") < _min_password_length():
        raise ValidationError(
            f"Password must be at least {_min_password_length()} characters long.",
            code="password_too_short",
        )
    return email.lower()


def create_account(role, email, password, display_name="", created_by=None):
    """Create the login identity and directory record in one write."""
    if role not in Role.values:
        raise ValidationError(f"Unknown role: {role}", code="invalid_role")
    email = validate_credentials(email, password)

    with transaction.atomic():
        if Account.objects.filter(email__iexact=email).exists():
            raise ValidationError("An account with this email already exists.", code="email_taken")
        account = Account.objects.create_user(
            username=email,
            email=email,
            password=password,
            role=role,
            display_name=(display_name or "").strip(),
            created_by=created_by,
        )

    logger.info("Created %s account %s (by %s)", role, account.pk, getattr(created_by, "pk", None))
    return account


def get_account(account_id):
    return Account.objects.get(pk=account_id)


def list_by_role(role):
    return Account.objects.filter(role=role).order_by("display_name", "email")


def is_duplicate_enrollment(enrollment_no):
    """
    Full scan of mentee enrollment numbers. The directory is small and
    mentee creation is rare; index the column if that stops being true.
    """
    wanted = (enrollment_no or "").strip()
    for existing in MenteeProfile.objects.values_list("enrollment_no", flat=True):
        if existing and existing.strip() == wanted:
            return True
    return False


def create_mentee(creator, email, password, display_name, enrollment_no,
                  class_group=None, parent_mobile=""):
    """
    Mentor (or admin) adds a mentee. The creating mentor becomes the primary
    mentor in the same transaction as the account creation.
    """
    if not (creator.is_mentor or creator.is_admin_capable):
        raise PermissionDenied("Only mentors and admins can create mentees.")
    enrollment_no = (enrollment_no or "").strip()
    if not enrollment_no:
        raise ValidationError("Enrollment number is required.", code="required")
    if is_duplicate_enrollment(enrollment_no):
        raise DuplicateEnrollment(enrollment_no)
    if class_group is not None and class_group.mentor_id != creator.pk and not creator.is_admin_capable:
        raise PermissionDenied("You can only add mentees to your own classes.")

    with transaction.atomic():
        account = create_account(Role.MENTEE, email, password, display_name, created_by=creator)
        profile = account.mentee_profile
        profile.enrollment_no = enrollment_no
        profile.class_group = class_group
        profile.parent_mobile = parent_mobile or ""
        if creator.is_mentor:
            profile.primary_mentor = creator
        profile.save()
        feed.publish(f"mentees/{account.pk}", "created", {"primary_mentor": profile.primary_mentor_id})

    return account


MENTEE_FIELDS = ("display_name", "enrollment_no", "class_group", "photo")


def update_mentee(actor, mentee_id, changes):
    """
    A supervising mentor (primary, guide or co-guide) or an admin edits a
    mentee's directory fields. ``class_group`` may be None to detach the
    mentee; ``photo`` may be raw bytes or an uploaded file.
    """
    unknown = set(changes) - set(MENTEE_FIELDS)
    if unknown:
        raise ValidationError(f"Fields not editable: {', '.join(sorted(unknown))}", code="invalid_field")
    profile = delegation.mentee_profile(mentee_id)
    if not (actor.is_admin_capable or delegation.supervises(actor, profile)):
        raise PermissionDenied("You do not supervise this mentee.")

    enrollment_no = None
    if "enrollment_no" in changes:
        enrollment_no = (changes["enrollment_no"] or "").strip()
        if not enrollment_no:
            raise ValidationError("Enrollment number is required.", code="required")
        if enrollment_no != (profile.enrollment_no or "").strip() and is_duplicate_enrollment(enrollment_no):
            raise DuplicateEnrollment(enrollment_no)
    class_group = changes.get("class_group")
    if class_group is not None and class_group.mentor_id != actor.pk and not actor.is_admin_capable:
        raise PermissionDenied("You can only move mentees into your own classes.")

    with transaction.atomic():
        profile = MenteeProfile.objects.select_for_update().select_related("account").get(pk=mentee_id)
        account = profile.account
        old = {"display_name": account.display_name, "enrollment_no": profile.enrollment_no,
               "class_group": profile.class_group_id}

        if "display_name" in changes:
            account.display_name = (changes["display_name"] or "").strip()
            account.save(update_fields=["display_name"])
        if enrollment_no is not None:
            profile.enrollment_no = enrollment_no
        if "class_group" in changes:
            profile.class_group = class_group
        photo = changes.get("photo")
        if photo is not None:
            if isinstance(photo, bytes):
                photo = ContentFile(photo, name=f"mentee_{profile.pk}.png")
            profile.photo.save(photo.name, photo, save=False)
        profile.save()

        new = {"display_name": account.display_name, "enrollment_no": profile.enrollment_no,
               "class_group": profile.class_group_id}
        audit.record(actor, "update_mentee", "directory", f"Edited mentee {account.email}",
                     old_data=old, new_data=new)
        feed.publish(f"mentees/{profile.pk}", "updated", new)

    logger.info("Mentee %s edited by %s", profile.pk, actor.pk)
    return profile


def create_staff_account(admin, role, email, password, display_name=""):
    """Admins create mentors, admins and admin+mentor accounts."""
    if not admin.is_admin_capable:
        raise PermissionDenied("Only admins can create staff accounts.")
    if role == Role.MENTEE:
        raise ValidationError("Use create_mentee for mentee accounts.", code="invalid_role")
    account = create_account(role, email, password, display_name, created_by=admin)
    audit.record(admin, "create_account", "directory", f"Created {role} {account.email}",
                 new_data={"id": account.pk, "role": role})
    return account


def set_role(actor, account_id, new_role):
    """Only Mentor <-> Admin+Mentor is allowed, and only by an admin-capable caller."""
    if not actor.is_admin_capable:
        raise PermissionDenied("Only admins can change roles.")
    allowed = {Role.MENTOR, Role.ADMIN_MENTOR}
    if new_role not in allowed:
        raise ValidationError(f"Role cannot be changed to {new_role}.", code="invalid_role")

    with transaction.atomic():
        account = Account.objects.select_for_update().get(pk=account_id)
        if account.role not in allowed:
            raise RoleMismatch(account, "mentor or admin+mentor")
        old_role = account.role
        if old_role == new_role:
            return account
        account.role = new_role
        account.save(update_fields=["role"])
        audit.record(actor, "set_role", "directory", f"{account.email}: {old_role} -> {new_role}",
                     old_data={"role": old_role}, new_data={"role": new_role})
        feed.publish(f"accounts/{account.pk}", "updated", {"role": new_role})

    logger.info("Role of %s changed %s -> %s by %s", account.pk, old_role, new_role, actor.pk)
    return account


def toggle_admin_access(actor, mentor_id):
    account = get_account(mentor_id)
    new_role = Role.MENTOR if account.role == Role.ADMIN_MENTOR else Role.ADMIN_MENTOR
    return set_role(actor, mentor_id, new_role)
