"""
Dual-identity credential vault and session switch.

A mentor (or admin+mentor) can store the login material of their admin
identity, an admin that of their mentor identity. The secret is encrypted
with Fernet and only ever decrypted for the owning account. The vault does
not check the secret; Django's authentication backend does at switch time.

Switching ends the current session before authenticating the other
identity. If authentication fails the caller is left logged out and has to
log in again; there is no automatic restore of the original session.
"""
import base64
import hashlib
import logging

from cryptography.fernet import Fernet, InvalidToken
from django.conf import settings
from django.contrib.auth import authenticate, login, logout
from django.core.exceptions import PermissionDenied, ValidationError
from django.core.validators import validate_email
from django.db import transaction

from .. import audit
from ..exceptions import AuthenticationFailed, RoleMismatch
from ..models import Account, CredentialLink

logger = logging.getLogger(__name__)


def _fernet():
    key = getattr(settings, "MENTORING_VAULT_KEY", None)
    if not key:
        digest = hashlib.sha256(settings.SECRET_KEY.encode("utf-8")).digest()
        key = base64.urlsafe_b64encode(digest)
    return Fernet(key.encode("utf-8") if isinstance(key, str) else key)


def _require_owner(actor, owner_id):
    if actor.pk != owner_id:
        raise PermissionDenied("Only the owner can access their linked identity.")


def link_identity(actor, owner_id, email, secret):
    """Store (or replace) the owner's second-identity login material."""
    _require_owner(actor, owner_id)
    if actor.is_mentee:
        raise RoleMismatch(actor, "mentor, admin or admin+mentor")
    email = (email or "").strip().lower()
    try:
        validate_email(email)
    except ValidationError:
        raise ValidationError("Please enter a valid email address.", code="invalid_email")
    if not secret:
        raise ValidationError("Password is required.", code="required")
    if email == actor.email.lower():
        raise ValidationError("The linked identity must be a different account.", code="same_account")

    with transaction.atomic():
        link, created = CredentialLink.objects.update_or_create(
            owner=actor,
            defaults={
                "linked_email": email,
                "linked_secret_encrypted": _fernet().encrypt(secret.encode("utf-8")).decode("utf-8"),
                "linked_account": Account.objects.filter(email__iexact=email).first(),
            },
        )
        audit.record(actor, "link_identity", "vault", f"Linked identity {email}",
                     new_data={"linked_email": email})

    logger.info("Account %s %s linked identity %s", actor.pk, "created" if created else "updated", email)
    return link


def read_link(actor, owner_id):
    """Returns {"email", "secret", "account_id"} for the owner, or None when nothing is linked."""
    _require_owner(actor, owner_id)
    link = CredentialLink.objects.filter(owner_id=owner_id).first()
    if link is None:
        return None
    try:
        secret = _fernet().decrypt(link.linked_secret_encrypted.encode("utf-8")).decode("utf-8")
    except InvalidToken:
        logger.error("Credential link of %s cannot be decrypted with the current vault key", owner_id)
        raise
    return {"email": link.linked_email, "secret": secret, "account_id": link.linked_account_id}


def linked_email(actor, owner_id):
    """The linked email without touching the stored secret; None when nothing is linked."""
    _require_owner(actor, owner_id)
    return CredentialLink.objects.filter(owner_id=owner_id).values_list("linked_email", flat=True).first()


def unlink_identity(actor, owner_id):
    _require_owner(actor, owner_id)
    deleted, _ = CredentialLink.objects.filter(owner_id=owner_id).delete()
    if deleted:
        audit.record(actor, "unlink_identity", "vault", "Linked identity removed")
    return bool(deleted)


def switch_to(request, linked_email, linked_secret):
    """
    1. end the current session, 2. authenticate the other identity,
    3. log it in. On failure the request stays anonymous and
    AuthenticationFailed is raised.
    """
    original = request.user if request.user.is_authenticated else None
    email = (linked_email or "").strip().lower()

    logout(request)
    user = authenticate(request, username=email, password=linked_secret)
    if user is None:
        audit.record(original, "switch_identity_failed", "vault", f"Could not switch to {email}")
        logger.warning("Identity switch from %s to %s failed; session ended",
                       getattr(original, "pk", None), email)
        raise AuthenticationFailed(email)

    login(request, user)
    audit.record(user, "switch_identity", "vault",
                 f"Switched from {getattr(original, 'email', 'anonymous')} to {user.email}",
                 old_data={"account": getattr(original, "pk", None)}, new_data={"account": user.pk})
    logger.info("Identity switch %s -> %s", getattr(original, "pk", None), user.pk)
    return user


def switch_to_linked(request):
    """Replay the caller's stored credential link."""
    if not request.user.is_authenticated:
        raise PermissionDenied("Log in before switching identity.")
    stored = read_link(request.user, request.user.pk)
    if stored is None:
        raise ValidationError("No linked identity saved.", code="no_link")
    return switch_to(request, stored["email"], stored["secret"])
