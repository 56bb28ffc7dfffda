from django.contrib.auth.decorators import login_required
from django.core.paginator import Paginator
from django.http import JsonResponse
from django.utils.dateparse import parse_date
from django.views.decorators.http import require_GET, require_POST

from ..audit import get_diff
from ..models import ActivityLog, Role
from ..services import delegation, directory
from .common import account_json, error_response, json_errors, mentee_json, parse_int, payload


@login_required
@require_POST
@json_errors
def create_staff(request):
    data = payload(request)
    account = directory.create_staff_account(request.user, data.get("role"), data.get("email"),
                                             data.get("password"), data.get("name", ""))
    return JsonResponse({"ok": True, "account": account_json(account)}, status=201)


@login_required
@require_GET
def staff_list(request):
    if not request.user.is_admin_capable:
        return error_response("Only admins can list staff.", 403)
    items = []
    for role in (Role.MENTOR, Role.ADMIN_MENTOR, Role.ADMIN):
        items.extend(account_json(a) for a in directory.list_by_role(role))
    return JsonResponse({"results": items})


@login_required
@require_POST
@json_errors
def toggle_admin_access(request, account_id):
    account = directory.toggle_admin_access(request.user, account_id)
    return JsonResponse({"ok": True, "account": account_json(account)})


@login_required
@require_POST
@json_errors
def assign_mentor(request, mentee_id):
    mentor_id = payload(request).get("mentor_id")
    mentor_id = None if mentor_id in (None, "") else parse_int(mentor_id, "mentor_id")
    profile = delegation.assign_primary_mentor(request.user, mentee_id, mentor_id)
    return JsonResponse({"ok": True, "mentee": mentee_json(profile)})


@login_required
@require_GET
def activity_logs_api(request):
    if not request.user.is_admin_capable:
        return error_response("Only admins can read the activity log.", 403)
    qs = ActivityLog.objects.select_related("user").order_by("-timestamp")

    user_q = request.GET.get("user")
    action_q = request.GET.get("action")
    module_q = request.GET.get("module")
    date_q = request.GET.get("date")

    if user_q:
        qs = qs.filter(user__email__icontains=user_q)
    if action_q:
        qs = qs.filter(action__icontains=action_q)
    if module_q:
        qs = qs.filter(module__icontains=module_q)
    if date_q:
        d = parse_date(date_q)
        if d:
            qs = qs.filter(timestamp__date=d)

    paginator = Paginator(qs, int(request.GET.get("per", 50) or 50))
    page_obj = paginator.get_page(request.GET.get("page", 1))

    items = []
    for lo in page_obj:
        items.append({
            "id": lo.id,
            "user": lo.user.email if lo.user else None,
            "action": lo.action,
            "module": lo.module,
            "details": lo.details,
            "changes": get_diff(lo.old_data, lo.new_data),
            "ip": lo.ip_address,
            "browser": lo.browser,
            "path": lo.request_path,
            "timestamp": lo.timestamp.isoformat(),
        })

    return JsonResponse({
        "results": items,
        "page": page_obj.number,
        "total_pages": paginator.num_pages,
        "total": paginator.count,
    })
