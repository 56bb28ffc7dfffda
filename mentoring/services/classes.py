import logging

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.shortcuts import get_object_or_404

from ..exceptions import RoleMismatch
from ..models import ClassGroup, MenteeProfile

logger = logging.getLogger(__name__)


def _clean(name, year, section):
    values = [(v or "").strip() for v in (name, year, section)]
    if not all(values):
        raise ValidationError("Please fill all required fields", code="required")
    return values


def _owned(mentor, class_id):
    class_group = get_object_or_404(ClassGroup, pk=class_id)
    if class_group.mentor_id != mentor.pk:
        raise PermissionDenied("This class belongs to another mentor.")
    return class_group


def create_class(mentor, name, year, section, description=""):
    if not mentor.is_mentor:
        raise RoleMismatch(mentor, "mentor")
    name, year, section = _clean(name, year, section)
    class_group = ClassGroup.objects.create(
        mentor=mentor, name=name, year=year, section=section, description=description or "",
    )
    logger.info("Mentor %s created class %s", mentor.pk, class_group.pk)
    return class_group


def update_class(mentor, class_id, name, year, section, description=""):
    class_group = _owned(mentor, class_id)
    class_group.name, class_group.year, class_group.section = _clean(name, year, section)
    class_group.description = description or ""
    class_group.save()
    return class_group


def delete_class(mentor, class_id):
    """Mentees of the class are detached, not deleted."""
    class_group = _owned(mentor, class_id)
    with transaction.atomic():
        detached = MenteeProfile.objects.filter(class_group=class_group).update(class_group=None)
        class_group.delete()
    logger.info("Mentor %s deleted class %s (%d mentees detached)", mentor.pk, class_id, detached)
    return detached


def list_classes(mentor):
    return ClassGroup.objects.filter(mentor=mentor)


def _enrollment_sort_key(profile):
    try:
        return (0, int(profile.enrollment_no), profile.enrollment_no)
    except (TypeError, ValueError):
        return (1, 0, profile.enrollment_no or "")


def class_roster(class_group):
    """Mentee profiles of the class ordered by numeric enrollment number."""
    profiles = (MenteeProfile.objects
                .filter(class_group=class_group)
                .select_related("account", "primary_mentor", "guide", "co_guide"))
    return sorted(profiles, key=_enrollment_sort_key)
