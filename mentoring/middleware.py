import threading

_thread_locals = threading.local()


def set_current_request(request):
    _thread_locals.request = request


def get_current_request():
    return getattr(_thread_locals, "request", None)


def clear_current_request():
    if hasattr(_thread_locals, "request"):
        del _thread_locals.request


def current_request_metadata():
    """IP, user agent and path of the request being served, or Nones outside a request."""
    request = get_current_request()
    if request is None:
        return {"ip_address": None, "browser": None, "request_path": None}

    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    ip = forwarded.split(",")[0].strip() if forwarded else request.META.get("REMOTE_ADDR")
    return {
        "ip_address": ip or None,
        "browser": (request.META.get("HTTP_USER_AGENT") or "")[:300] or None,
        "request_path": request.path[:300],
    }


class RequestCaptureMiddleware:
    """
    Holds the request being served so audit entries written deep inside the
    services can record who called from where. Must come after AuthenticationMiddleware.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        set_current_request(request)
        try:
            return self.get_response(request)
        finally:
            clear_current_request()
