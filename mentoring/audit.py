import logging

from .models import ActivityLog
from .middleware import current_request_metadata

logger = logging.getLogger(__name__)


def get_diff(old_data, new_data):
    """
    Returns [{"field": ..., "old": ..., "new": ...}] for keys whose value changed.
    Either side may be None (creation / deletion).
    """
    old_data = old_data or {}
    new_data = new_data or {}
    changes = []
    for key in sorted(set(old_data) | set(new_data)):
        before = old_data.get(key)
        after = new_data.get(key)
        if before != after:
            changes.append({"field": key, "old": before, "new": after})
    return changes


def record(actor, action, module, details="", old_data=None, new_data=None):
    """Write one audit row. Request metadata is picked up from the captured request, if any."""
    entry = ActivityLog.objects.create(
        user=actor if getattr(actor, "pk", None) else None,
        action=action,
        module=module,
        details=details,
        old_data=old_data,
        new_data=new_data,
        **current_request_metadata(),
    )
    logger.info("audit %s/%s by %s: %s", module, action, getattr(actor, "pk", None), details)
    return entry
