"""
Report routing and review.

Recipients are resolved from the author's assignment / delegation slots at
submission time and stored as rows that are never recomputed. Any recipient
may close a pending report (approve or reject); a closed report only accepts
new feedback text, never a different decision.
"""
import logging
from collections import defaultdict

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.utils import timezone

from .. import feed
from ..exceptions import NoRecipients, RoleMismatch
from ..models import MenteeProfile, Report, ReportRecipient
from ..notifications import notify

logger = logging.getLogger(__name__)

MENTOR, GUIDE, CO_GUIDE = "mentor", "guide", "co_guide"
ROLE_TO_SLOT = {MENTOR: "primary_mentor", GUIDE: "guide", CO_GUIDE: "co_guide"}
DECISIONS = {"approve": "approved", "reject": "rejected"}


def submit(author, title, description, blob_ref, wanted_roles):
    if not author.is_mentee:
        raise RoleMismatch(author, "mentee")
    title = (title or "").strip()
    if not title:
        raise ValidationError("Report title is required.", code="required")
    unknown = set(wanted_roles) - set(ROLE_TO_SLOT)
    if unknown:
        raise ValidationError(f"Unknown recipient roles: {', '.join(sorted(unknown))}", code="invalid_role")

    with transaction.atomic():
        profile = MenteeProfile.objects.select_related("primary_mentor", "guide", "co_guide").get(pk=author.pk)
        recipients = []
        for role in (MENTOR, GUIDE, CO_GUIDE):
            if role not in wanted_roles:
                continue
            holder = getattr(profile, ROLE_TO_SLOT[role])
            if holder is None:
                logger.info("Report by %s: no %s assigned, dropped from recipients", author.pk, role)
                continue
            recipients.append((holder, role))
        if not recipients:
            raise NoRecipients()

        report = Report.objects.create(
            author=author,
            title=title,
            description=description or "",
            blob_ref=blob_ref or "",
            submitted_at=timezone.now(),
        )
        ReportRecipient.objects.bulk_create(
            ReportRecipient(report=report, account=holder, role_at_submission=role)
            for holder, role in recipients
        )
        feed.publish(f"reports/{report.pk}", "created", {"author": author.pk, "status": report.status})

    for holder in {holder for holder, _ in recipients}:
        notify(holder, f"New report from {author}: {title}", "info")
    logger.info("Report %s submitted by %s to %s", report.pk, author.pk, [(h.pk, r) for h, r in recipients])
    return report


def _as_recipient(report_id, account):
    report = Report.objects.get(pk=report_id)
    if not report.recipients.filter(account=account).exists():
        raise PermissionDenied("You are not a recipient of this report.")
    return report


def review(report_id, reviewer, decision, feedback=""):
    """
    Pending -> approved/rejected with feedback. On a closed report only the
    feedback changes.
    """
    if decision not in DECISIONS:
        raise ValidationError(f"Unknown decision: {decision}", code="invalid_decision")

    with transaction.atomic():
        _as_recipient(report_id, reviewer)
        report = Report.objects.select_for_update().select_related("author").get(pk=report_id)
        if report.is_closed:
            if DECISIONS[decision] != report.status:
                logger.warning("Report %s is %s; %s by %s ignored, feedback updated only",
                               report.pk, report.status, decision, reviewer.pk)
            report.feedback = feedback
            report.save(update_fields=["feedback"])
        else:
            report.status = DECISIONS[decision]
            report.feedback = feedback
            report.reviewed_by = reviewer
            report.reviewed_at = timezone.now()
            report.save(update_fields=["status", "feedback", "reviewed_by", "reviewed_at"])
            logger.info("Report %s %s by %s", report.pk, report.status, reviewer.pk)
        feed.publish(f"reports/{report.pk}", "updated", {"status": report.status, "feedback": report.feedback})

    notify(report.author, f"Your report '{report.title}' is {report.status}.",
           "success" if report.status == "approved" else "warning")
    return report


def mark_viewed(report_id, reviewer):
    report = _as_recipient(report_id, reviewer)
    if Report.objects.filter(pk=report.pk, viewed=False).update(viewed=True):
        feed.publish(f"reports/{report.pk}", "updated", {"viewed": True})
        report.viewed = True
    return report


def list_for(account, role=None, status=None, viewed=None):
    """Reports where ``account`` is a named recipient, optionally under one role."""
    recipient_filter = {"recipients__account": account}
    if role is not None:
        recipient_filter["recipients__role_at_submission"] = role
    qs = Report.objects.filter(**recipient_filter)
    if status is not None:
        qs = qs.filter(status=status)
    if viewed is not None:
        qs = qs.filter(viewed=viewed)
    return qs.select_related("author").distinct()


def list_by_author(author):
    return Report.objects.filter(author=author).prefetch_related("recipients__account")


def group_by_role(account, status=None):
    """{role: [reports]} for the guided-reports screen."""
    grouped = defaultdict(list)
    rows = (ReportRecipient.objects
            .filter(account=account)
            .select_related("report", "report__author")
            .order_by("-report__submitted_at"))
    for row in rows:
        if status is None or row.report.status == status:
            grouped[row.role_at_submission].append(row.report)
    return dict(grouped)
