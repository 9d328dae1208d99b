"""Report workflows: submission, admin review and account actions."""

from __future__ import annotations

import logging

from django.db import transaction  # type: ignore
from django.db.models import Q  # type: ignore

from apps.bookings.models import Booking
from apps.notifications.models import Notification
from apps.notifications.services import notify_admins, send_notification
from apps.users.models import CustomUser
from apps.users.services import reactivate_account, suspend_account

from .models import Report, ReportAdminAction

logger = logging.getLogger(__name__)

MIN_DESCRIPTION_LENGTH = 10
MAX_ATTACHMENT_BYTES = 10 * 1024 * 1024


class ReportError(Exception):
    status_code = 400


class ReportNotFoundError(ReportError):
    status_code = 404


@transaction.atomic
def submit_report(
    reporter: CustomUser,
    reported_user_id: int,
    issue_type: str,
    description: str,
    *,
    booking_id: int | None = None,
    attachment=None,
) -> Report:
    description = description.strip()
    if len(description) < MIN_DESCRIPTION_LENGTH:
        raise ReportError(f"Description must be at least {MIN_DESCRIPTION_LENGTH} characters.")
    if reporter.id == reported_user_id:
        raise ReportError("You cannot report yourself.")

    reported_user = CustomUser.objects.filter(pk=reported_user_id).first()
    if reported_user is None:
        raise ReportNotFoundError("Reported user not found.")

    booking = None
    if booking_id is not None:
        booking = Booking.objects.filter(
            Q(client=reporter) | Q(freelancer=reporter),
            pk=booking_id,
        ).first()
        if booking is None:
            raise ReportNotFoundError("Booking not found or you do not have access.")

    if attachment is not None and attachment.size > MAX_ATTACHMENT_BYTES:
        raise ReportError("Attachments must be 10 MB or smaller.")

    report = Report.objects.create(
        reporter=reporter,
        reported_user=reported_user,
        booking=booking,
        issue_type=issue_type,
        description=description,
        attachment=attachment or "",
    )
    logger.info(f"Report {report.id} ({issue_type}) filed by {reporter.email} against {reported_user.email}")
    notify_admins(
        Notification.Type.REPORT,
        "New Report",
        f"Report #{report.id} ({report.get_issue_type_display()}) against {reported_user.display_name}.",
        {"report_id": report.id},
    )
    return report


def update_report_status(report: Report, new_status: str, *, actor: CustomUser, notes: str = "") -> Report:
    previous = report.status
    report.status = new_status
    report.save(update_fields=["status", "updated_at"])
    ReportAdminAction.objects.create(
        report=report,
        admin=actor,
        action_type=ReportAdminAction.ActionType.STATUS_UPDATE,
        notes=notes,
        previous_status=previous,
        new_status=new_status,
    )
    logger.info(f"Report {report.id} moved from {previous} to {new_status} by {actor.email}")
    return report


def _warn_account(user: CustomUser, reason: str, *, actor: CustomUser) -> CustomUser:
    logger.info(f"User {user.email} warned by {actor.email}: {reason}")
    send_notification(
        user,
        Notification.Type.ACCOUNT,
        "Account Warning",
        f"You have received a warning from the Braida team. Reason: {reason}",
        {"reason": reason},
        email=True,
    )
    return user


@transaction.atomic
def take_account_action(report: Report, action_type: str, reason: str, *, actor: CustomUser, notes: str = "") -> str:
    """Warn, suspend or reactivate the reported user; returns the new account status."""
    user = report.reported_user
    previous = user.status
    if action_type == ReportAdminAction.ActionType.WARN:
        _warn_account(user, reason, actor=actor)
    elif action_type == ReportAdminAction.ActionType.SUSPEND:
        suspend_account(user, reason, actor=actor)
    elif action_type == ReportAdminAction.ActionType.REACTIVATE:
        reactivate_account(user, actor=actor)
    else:
        raise ReportError(f"Unknown account action: {action_type}.")

    ReportAdminAction.objects.create(
        report=report,
        admin=actor,
        action_type=action_type,
        notes=notes or reason,
        previous_account_status=previous,
        new_account_status=user.status,
    )
    return user.status
