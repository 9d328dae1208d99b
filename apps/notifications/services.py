"""Notification services: in-app rows and email delivery."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.template.loader import render_to_string  # type: ignore
from django.utils.html import strip_tags  # type: ignore

from .models import Notification

if TYPE_CHECKING:  # pragma: no cover
    from apps.users.models import CustomUser

logger = logging.getLogger(__name__)


# ============================================================================
# EMAIL
# ============================================================================

def send_email_notification(
    recipient_email: str,
    subject: str,
    template_name: str | None,
    context: dict,
    *,
    html_message: str | None = None,
) -> bool:
    """
    Send a single email.

    Args:
        recipient_email: recipient address
        subject: subject line
        template_name: optional Django template rendered with ``context``
        context: template context; ``context["message"]`` is the plain body
            when neither a template nor ``html_message`` is given
        html_message: ready HTML body

    Returns:
        bool: True if the message was handed to the mail backend
    """
    try:
        if html_message:
            text_message = strip_tags(html_message)
        elif template_name:
            html_message = render_to_string(template_name, context)
            text_message = strip_tags(html_message)
        else:
            text_message = context.get("message", "")
            html_message = None

        send_mail(
            subject=subject,
            message=text_message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            html_message=html_message,
            fail_silently=False,
        )

        logger.info(f"Email sent successfully to {recipient_email}: {subject}")
        return True

    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        return False


# ============================================================================
# IN-APP
# ============================================================================

def send_notification(
    user: "CustomUser",
    notification_type: str,
    title: str,
    message: str,
    data: dict[str, Any] | None = None,
    *,
    email: bool = False,
) -> Notification:
    """
    Create an in-app notification and optionally mirror it by email.

    Email failures are logged by ``send_email_notification`` and never
    raised, so a flaky mail server cannot roll back a booking transition.
    """
    notification = Notification.objects.create(
        user=user,
        notification_type=notification_type,
        title=title,
        message=message,
        data=data or {},
    )
    logger.info(f"In-app notification created for {user.email}: {title}")

    if email and user.email:
        send_email_notification(
            recipient_email=user.email,
            subject=title,
            template_name=None,
            context={"message": message},
        )
    return notification


def notify_many(
    users: Iterable["CustomUser"],
    notification_type: str,
    title: str,
    message: str,
    data: dict[str, Any] | None = None,
    *,
    email: bool = False,
) -> int:
    count = 0
    for user in users:
        send_notification(user, notification_type, title, message, data, email=email)
        count += 1
    return count


def notify_admins(
    notification_type: str,
    title: str,
    message: str,
    data: dict[str, Any] | None = None,
) -> int:
    from apps.users.models import CustomUser

    return notify_many(CustomUser.objects.admins(), notification_type, title, message, data)
