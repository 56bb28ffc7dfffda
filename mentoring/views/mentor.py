from django.contrib.auth.decorators import login_required
from django.http import HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404
from django.utils.dateparse import parse_datetime
from django.views.decorators.http import require_GET, require_POST

from .. import exports
from ..models import ClassGroup
from ..services import classes, delegation, directory, grants, queries, reports, sessions
from .common import (account_json, error_response, grant_json, json_errors, mentee_json, parse_bool, parse_int,
                     payload, query_json, report_json, session_json)


def _int_list(data, name):
    values = data.getlist(name) if hasattr(data, "getlist") else data.get(name, [])
    return [parse_int(v, name) for v in values]


# --- delegation -----------------------------------------------------------

@login_required
@require_POST
@json_errors
def verify_delegation(request):
    data = payload(request)
    result = delegation.verify_delegation(request.user, data.get("email"), data.get("slot"))
    return JsonResponse({
        "ok": result.ok,
        "outcome": result.outcome.value,
        "message": result.message,
        "mentee": mentee_json(result.mentee) if result.mentee else None,
        "holder": account_json(result.holder),
    })


@login_required
@require_POST
@json_errors
def commit_delegation(request):
    data = payload(request)
    profile = delegation.commit_delegation(parse_int(data.get("mentee_id"), "mentee_id"), request.user,
                                           data.get("slot"))
    return JsonResponse({"ok": True, "mentee": mentee_json(profile)})


@login_required
@require_POST
@json_errors
def release_delegation(request):
    data = payload(request)
    released = delegation.release_delegation(parse_int(data.get("mentee_id"), "mentee_id"), request.user,
                                             data.get("slot"))
    return JsonResponse({"ok": True, "released": released})


@login_required
@require_GET
def my_mentees(request):
    primary = [mentee_json(p) for p in delegation.list_primary_mentees(request.user)]
    guided = [mentee_json(p) for p in delegation.list_guided_mentees(request.user)]
    return JsonResponse({"primary": primary, "guided": guided})


# --- edit grants ----------------------------------------------------------

def _hours(data):
    hours = data.get("hours")
    return None if hours in (None, "") else parse_int(hours, "hours")


@login_required
@require_POST
@json_errors
def allow_edit(request, mentee_id):
    edit_grant = grants.grant(mentee_id, _hours(payload(request)), granted_by=request.user)
    return JsonResponse({"ok": True, "grant": grant_json(edit_grant)})


@login_required
@require_POST
@json_errors
def bulk_allow_edit(request):
    data = payload(request)
    outcomes = grants.bulk_grant(_int_list(data, "mentee_ids"), _hours(data), granted_by=request.user)
    results = {}
    for mentee_id, outcome in outcomes.items():
        if isinstance(outcome, Exception):
            results[str(mentee_id)] = {"ok": False, "error": str(outcome)}
        else:
            results[str(mentee_id)] = {"ok": True, "grant": grant_json(outcome)}
    return JsonResponse({"ok": any(r["ok"] for r in results.values()), "results": results})


# --- reports --------------------------------------------------------------

@login_required
@require_GET
@json_errors
def received_reports(request):
    qs = reports.list_for(
        request.user,
        role=request.GET.get("role") or None,
        status=request.GET.get("status") or None,
        viewed=parse_bool(request.GET.get("viewed")),
    )
    items = [report_json(r) for r in qs]
    return JsonResponse({"results": items, "count": len(items)})


@login_required
@require_POST
@json_errors
def review_report(request, report_id):
    data = payload(request)
    report = reports.review(report_id, request.user, data.get("decision"), data.get("feedback", ""))
    return JsonResponse({"ok": True, "report": report_json(report)})


@login_required
@require_POST
@json_errors
def mark_report_viewed(request, report_id):
    report = reports.mark_viewed(report_id, request.user)
    return JsonResponse({"ok": True, "viewed": report.viewed})


# --- queries --------------------------------------------------------------

@login_required
@require_GET
def query_inbox(request):
    items = [query_json(q) for q in queries.list_for_mentor(request.user, request.GET.get("status") or None)]
    return JsonResponse({"results": items, "count": len(items)})


@login_required
@require_POST
@json_errors
def answer_query(request, query_id):
    query = queries.answer(query_id, request.user, payload(request).get("answer"))
    return JsonResponse({"ok": True, "query": query_json(query)})


# --- classes & mentees ----------------------------------------------------

@login_required
@require_POST
@json_errors
def add_mentee(request):
    data = payload(request)
    class_group = None
    if data.get("class_id"):
        class_group = get_object_or_404(ClassGroup, pk=parse_int(data.get("class_id"), "class_id"))
    account = directory.create_mentee(
        request.user,
        email=data.get("email"),
        password=data.get("password"),
        display_name=data.get("name", ""),
        enrollment_no=data.get("enrollment_no"),
        class_group=class_group,
        parent_mobile=data.get("parent_mobile", ""),
    )
    return JsonResponse({"ok": True, "mentee": mentee_json(account.mentee_profile)}, status=201)


@login_required
@require_POST
@json_errors
def edit_mentee(request, mentee_id):
    data = payload(request)
    changes = {}
    if "name" in data:
        changes["display_name"] = data.get("name")
    if "enrollment_no" in data:
        changes["enrollment_no"] = data.get("enrollment_no")
    if "class_id" in data:
        class_id = data.get("class_id")
        changes["class_group"] = (get_object_or_404(ClassGroup, pk=parse_int(class_id, "class_id"))
                                  if class_id not in (None, "") else None)
    if "photo" in request.FILES:
        changes["photo"] = request.FILES["photo"]
    profile = directory.update_mentee(request.user, mentee_id, changes)
    return JsonResponse({"ok": True, "mentee": mentee_json(profile)})


@login_required
@json_errors
def class_list(request):
    if request.method == "POST":
        data = payload(request)
        class_group = classes.create_class(request.user, data.get("name"), data.get("year"),
                                           data.get("section"), data.get("description", ""))
        return JsonResponse({"ok": True, "id": class_group.pk}, status=201)
    items = [
        {"id": c.pk, "name": c.name, "year": c.year, "section": c.section, "mentees": c.mentees.count()}
        for c in classes.list_classes(request.user)
    ]
    return JsonResponse({"results": items})


@login_required
@require_POST
@json_errors
def delete_class(request, class_id):
    detached = classes.delete_class(request.user, class_id)
    return JsonResponse({"ok": True, "detached": detached})


@login_required
@require_GET
def export_class(request, class_id, fmt):
    class_group = get_object_or_404(ClassGroup, pk=class_id)
    if class_group.mentor_id != request.user.pk and not request.user.is_admin_capable:
        return error_response("This class belongs to another mentor.", 403)

    if fmt not in ("xlsx", "pdf"):
        return error_response(f"Unknown export format: {fmt}", 400)

    filename = f"class_{class_group.pk}_roster"
    if fmt == "xlsx":
        response = HttpResponse(
            exports.class_roster_workbook(class_group),
            content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )
        response["Content-Disposition"] = f'attachment; filename="{filename}.xlsx"'
    else:
        response = HttpResponse(exports.class_roster_pdf(class_group, generated_by=request.user),
                                content_type="application/pdf")
        response["Content-Disposition"] = f'attachment; filename="{filename}.pdf"'
    return response


# --- sessions -------------------------------------------------------------

@login_required
@require_POST
@json_errors
def schedule_session(request):
    data = payload(request)
    scheduled_for = parse_datetime(data.get("scheduled_for") or "")
    if scheduled_for is None:
        return error_response("Please provide a valid date and time.", 400)
    session = sessions.schedule_session(
        request.user,
        topic=data.get("topic"),
        scheduled_for=scheduled_for,
        mentee_ids=_int_list(data, "mentee_ids"),
        description=data.get("description", ""),
        meeting_link=data.get("meeting_link", ""),
        duration_minutes=parse_int(data.get("duration_minutes", 60), "duration_minutes"),
    )
    return JsonResponse({"ok": True, "session": session_json(session)}, status=201)
