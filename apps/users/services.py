"""Account moderation services.

Used by the admin API, by dispute resolution and by the freelancer
reliability tracker. Every change notifies the affected user.
"""

from __future__ import annotations

import logging

from apps.notifications.models import Notification
from apps.notifications.services import send_notification

from .models import CustomUser

logger = logging.getLogger(__name__)


class ModerationError(Exception):
    """Raised when a moderation action is not allowed for the account."""


def suspend_account(user: CustomUser, reason: str, *, actor: CustomUser | None = None) -> CustomUser:
    if user.is_platform_admin():
        raise ModerationError("Admin accounts cannot be suspended.")
    if user.status == CustomUser.AccountStatus.SUSPENDED:
        raise ModerationError("Account is already suspended.")

    user.suspend(reason)
    logger.info(f"User {user.email} suspended by {getattr(actor, 'email', 'system')}: {reason}")
    send_notification(
        user,
        Notification.Type.ACCOUNT,
        "Account Suspended",
        f"Your account has been suspended. Reason: {reason}",
        {"reason": reason},
        email=True,
    )
    return user


def reactivate_account(user: CustomUser, *, actor: CustomUser | None = None) -> CustomUser:
    if user.status == CustomUser.AccountStatus.ACTIVE:
        raise ModerationError("Account is already active.")

    user.reactivate()
    logger.info(f"User {user.email} reactivated by {getattr(actor, 'email', 'system')}")
    send_notification(
        user,
        Notification.Type.ACCOUNT,
        "Account Reactivated",
        "Your account is active again.",
        email=True,
    )
    return user


def verify_freelancer(user: CustomUser, *, actor: CustomUser | None = None) -> CustomUser:
    if not user.is_freelancer():
        raise ModerationError("Only freelancer accounts can be verified as freelancers.")
    if user.is_verified_freelancer:
        raise ModerationError("Freelancer is already verified.")

    user.mark_verified_freelancer()
    logger.info(f"Freelancer {user.email} verified by {getattr(actor, 'email', 'system')}")
    send_notification(
        user,
        Notification.Type.ACCOUNT,
        "You're Verified",
        "Your freelancer profile has been verified. You can now set up payouts.",
    )
    return user


def verify_client(user: CustomUser, *, actor: CustomUser | None = None) -> CustomUser:
    if user.is_verified:
        raise ModerationError("Account is already verified.")

    user.mark_verified()
    logger.info(f"User {user.email} marked verified by {getattr(actor, 'email', 'system')}")
    send_notification(
        user,
        Notification.Type.ACCOUNT,
        "Account Verified",
        "Your account is verified. You can now book appointments.",
    )
    return user
