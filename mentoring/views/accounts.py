from django.contrib.auth import authenticate, login, logout
from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.views.decorators.http import require_POST

from ..services import vault
from .common import account_json, error_response, json_errors, payload


@require_POST
@json_errors
def user_login(request):
    data = payload(request)
    email = (data.get("email") or "").strip().lower()
    user = authenticate(request, username=email, password=data.get("password"))
    if user is None:
        return error_response("Invalid email or password.", 401)
    login(request, user)
    return JsonResponse({"ok": True, "account": account_json(user)})


@require_POST
def user_logout(request):
    logout(request)
    return JsonResponse({"ok": True})


@login_required
@json_errors
def linked_identity(request):
    """GET shows the linked email, POST replaces the link, DELETE removes it."""
    if request.method == "POST":
        data = payload(request)
        link = vault.link_identity(request.user, request.user.pk, data.get("email"), data.get("password"))
        return JsonResponse({"ok": True, "email": link.linked_email})
    if request.method == "DELETE":
        return JsonResponse({"ok": True, "removed": vault.unlink_identity(request.user, request.user.pk)})

    email = vault.linked_email(request.user, request.user.pk)
    return JsonResponse({"linked": email is not None, "email": email})


@login_required
@require_POST
@json_errors
def switch_identity(request):
    data = payload(request)
    if data.get("email"):
        user = vault.switch_to(request, data.get("email"), data.get("password"))
    else:
        user = vault.switch_to_linked(request)
    return JsonResponse({"ok": True, "account": account_json(user)})
