"""Conversation workflows: starting a thread, sending and reading messages."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db import transaction  # type: ignore
from django.db.models import Q  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.models import Booking
from apps.notifications.models import Notification
from apps.notifications.services import send_notification
from apps.users.models import CustomUser

from .models import Conversation, Message

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 5000
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


class ConversationError(Exception):
    status_code = 400


class ConversationNotFoundError(ConversationError):
    status_code = 404


def visible_conversations(user):
    return Conversation.objects.filter(Q(client=user) | Q(freelancer=user)).select_related(
        "client", "freelancer", "booking", "booking__service"
    )


@dataclass
class ConversationStart:
    conversation: Conversation
    created: bool


@transaction.atomic
def start_conversation(
    client: CustomUser,
    freelancer_id: int,
    *,
    booking_id: int | None = None,
    initial_message: str = "",
) -> ConversationStart:
    """Open a thread with a freelancer, or return the one that already exists."""
    freelancer = CustomUser.objects.filter(pk=freelancer_id, role=CustomUser.RoleChoices.FREELANCER).first()
    if freelancer is None:
        raise ConversationNotFoundError("Freelancer not found.")

    booking = None
    if booking_id is not None:
        booking = Booking.objects.filter(pk=booking_id, client=client, freelancer=freelancer).first()
        if booking is None:
            raise ConversationNotFoundError("Booking not found.")

    conversation = Conversation.objects.filter(client=client, freelancer=freelancer, booking=booking).first()
    if conversation is not None:
        return ConversationStart(conversation, False)

    conversation = Conversation.objects.create(client=client, freelancer=freelancer, booking=booking)
    logger.info(f"Conversation {conversation.id} started by {client.email} with {freelancer.email}")
    if initial_message.strip():
        send_message(conversation, client, initial_message)
    return ConversationStart(conversation, True)


def send_message(
    conversation: Conversation,
    sender: CustomUser,
    content: str,
    message_type: str = Message.MessageType.TEXT,
) -> Message:
    if not conversation.has_participant(sender):
        raise ConversationNotFoundError("Conversation not found.")
    content = content.strip()
    if not content:
        raise ConversationError("Message content cannot be empty.")
    if len(content) > MAX_MESSAGE_LENGTH:
        raise ConversationError(f"Message too long (max {MAX_MESSAGE_LENGTH} characters).")

    message = Message.objects.create(
        conversation=conversation,
        sender=sender,
        content=content,
        message_type=message_type,
    )

    recipient = conversation.get_other_user(sender)
    snippet = content[:50] + ("..." if len(content) > 50 else "")
    send_notification(
        recipient,
        Notification.Type.MESSAGE_RECEIVED,
        "New Message",
        f"{sender.display_name}: {snippet}",
        {"conversation_id": conversation.id},
    )
    return message


@dataclass
class MessagePage:
    messages: list[Message]
    has_more: bool


def read_messages(
    conversation: Conversation,
    reader: CustomUser,
    *,
    before: int | None = None,
    limit: int | None = None,
) -> MessagePage:
    """Return the newest messages before ``before`` in chronological order.

    Reading marks the other party's messages as read and clears the
    reader's unread counter.
    """
    if not conversation.has_participant(reader):
        raise ConversationNotFoundError("Conversation not found.")
    limit = min(limit or DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE)

    qs = conversation.messages.select_related("sender")
    if before is not None:
        qs = qs.filter(id__lt=before)
    newest = list(qs.order_by("-sent_at", "-id")[: limit + 1])
    has_more = len(newest) > limit
    page = newest[:limit]
    page.reverse()

    conversation.messages.filter(read_at__isnull=True).exclude(sender=reader).update(read_at=timezone.now())
    conversation.mark_as_read(reader)
    return MessagePage(page, has_more)
