from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from .. import blobs
from ..notifications import mark_notification_read, unread_notifications
from ..services import grants, queries, reports, sessions
from .common import json_errors, payload, query_json, report_json, session_json


@login_required
@require_GET
@json_errors
def my_reports(request):
    items = [report_json(r) for r in reports.list_by_author(request.user)]
    return JsonResponse({"results": items, "count": len(items)})


@login_required
@require_POST
@json_errors
def submit_report(request):
    data = payload(request)
    roles = data.getlist("roles") if hasattr(data, "getlist") else data.get("roles", [])
    blob_ref = ""
    upload = request.FILES.get("file")
    if upload is not None:
        blob_ref = blobs.upload(upload, upload.name)
    report = reports.submit(request.user, data.get("title"), data.get("description", ""), blob_ref, roles)
    return JsonResponse({"ok": True, "report": report_json(report)}, status=201)


@login_required
@require_GET
@json_errors
def my_queries(request):
    items = [query_json(q) for q in queries.list_for_mentee(request.user)]
    return JsonResponse({"results": items, "count": len(items)})


@login_required
@require_POST
@json_errors
def ask_query(request):
    data = payload(request)
    query = queries.ask(request.user, data.get("subject"), data.get("question"))
    return JsonResponse({"ok": True, "query": query_json(query)}, status=201)


@login_required
@require_GET
@json_errors
def edit_status(request):
    return JsonResponse({"editable": grants.is_editable(request.user.pk)})


@login_required
@require_POST
@json_errors
def edit_profile(request):
    data = payload(request)
    changes = {field: data[field] for field in grants.EDITABLE_FIELDS if field in data and field != "photo"}
    if "photo" in request.FILES:
        changes["photo"] = request.FILES["photo"]
    profile = grants.save_profile_edit(request.user, changes)
    return JsonResponse({
        "ok": True,
        "phone": profile.phone,
        "parent_mobile": profile.parent_mobile,
        "photo_url": profile.photo.url if profile.photo else None,
    })


@login_required
@require_GET
def notifications(request):
    items = [
        {"id": n.pk, "message": n.message, "severity": n.severity, "created_at": n.created_at.isoformat()}
        for n in unread_notifications(request.user)
    ]
    return JsonResponse({"results": items, "count": len(items)})


@login_required
@require_POST
@json_errors
def read_notification(request, notification_id):
    mark_notification_read(request.user, notification_id)
    return JsonResponse({"ok": True})


@login_required
@require_GET
def upcoming_sessions(request):
    items = [session_json(s) for s in sessions.upcoming_sessions(request.user)]
    return JsonResponse({"results": items, "count": len(items)})
