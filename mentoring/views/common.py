import json
import logging
from functools import wraps

from django.core.exceptions import ObjectDoesNotExist, PermissionDenied, ValidationError
from django.http import Http404, JsonResponse

from ..blobs import resolve
from ..exceptions import (AuthenticationFailed, DuplicateEnrollment, MentoringError, NoMentorAssigned,
                          NoRecipients, RoleMismatch, SlotOccupied)

logger = logging.getLogger(__name__)


def error_response(message, status, **extra):
    return JsonResponse({"ok": False, "error": message, **extra}, status=status)


def _validation_message(exc):
    return "; ".join(exc.messages)


def json_errors(view):
    """Translate domain and Django errors raised by the services into JSON responses."""

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except ValidationError as exc:
            return error_response(_validation_message(exc), 400)
        except PermissionDenied as exc:
            return error_response(str(exc) or "Permission denied", 403)
        except SlotOccupied as exc:
            return error_response(str(exc), 409, holder=str(exc.by_whom))
        except DuplicateEnrollment as exc:
            return error_response(str(exc), 409)
        except AuthenticationFailed as exc:
            return error_response(str(exc), 401)
        except (RoleMismatch, NoRecipients, NoMentorAssigned) as exc:
            return error_response(str(exc), 400)
        except MentoringError as exc:
            logger.warning("Unhandled domain error in %s: %s", view.__name__, exc)
            return error_response(str(exc), 400)
        except (ObjectDoesNotExist, Http404):
            return error_response("Not found", 404)

    return wrapper


def payload(request):
    """Request data from a JSON body or a form post."""
    if request.content_type == "application/json":
        try:
            data = json.loads(request.body or b"{}")
        except json.JSONDecodeError:
            raise ValidationError("Invalid JSON body.", code="invalid_json")
        if not isinstance(data, dict):
            raise ValidationError("JSON body must be an object.", code="invalid_json")
        return data
    return request.POST


def parse_int(value, name):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number.", code="invalid")


def parse_bool(value):
    if value in (None, ""):
        return None
    return str(value).lower() in ("1", "true", "yes")


def account_json(account):
    if account is None:
        return None
    return {"id": account.pk, "email": account.email, "name": str(account), "role": account.role}


def mentee_json(profile):
    return {
        "id": profile.pk,
        "email": profile.account.email,
        "name": str(profile.account),
        "enrollment_no": profile.enrollment_no,
        "class_id": profile.class_group_id,
        "primary_mentor": profile.primary_mentor_id,
        "guide": profile.guide_id,
        "co_guide": profile.co_guide_id,
    }


def report_json(report):
    return {
        "id": report.pk,
        "author": report.author_id,
        "title": report.title,
        "description": report.description,
        "file_url": resolve(report.blob_ref),
        "submitted_at": report.submitted_at.isoformat(),
        "status": report.status,
        "feedback": report.feedback,
        "viewed": report.viewed,
        "recipients": [
            {"account": r.account_id, "role": r.role_at_submission} for r in report.recipients.all()
        ],
    }


def query_json(query):
    return {
        "id": query.pk,
        "mentee": query.mentee_id,
        "mentor": query.mentor_id,
        "subject": query.subject,
        "question": query.question,
        "answer": query.answer,
        "status": query.status,
        "asked_at": query.asked_at.isoformat(),
        "answered_at": query.answered_at.isoformat() if query.answered_at else None,
    }


def grant_json(edit_grant):
    return {
        "mentee": edit_grant.mentee_id,
        "allowed_at": edit_grant.allowed_at.isoformat(),
        "expires_at": edit_grant.expires_at.isoformat(),
        "consumed": edit_grant.consumed,
    }


def session_json(session):
    return {
        "id": session.pk,
        "topic": session.topic,
        "scheduled_for": session.scheduled_for.isoformat(),
        "ends_at": session.ends_at.isoformat(),
        "meeting_link": session.meeting_link,
        "room": session.video_room_name,
        "status": session.status,
    }
