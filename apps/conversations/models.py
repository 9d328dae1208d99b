"""Messaging between a client and a freelancer.

A conversation can be tied to a booking for context. Unread counters
and the last-message preview live on the conversation so the inbox can
be listed without touching the messages table.
"""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

PREVIEW_LENGTH = 100


class Conversation(models.Model):
    """A thread between one client and one freelancer."""

    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="client_conversations",
    )
    freelancer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="freelancer_conversations",
    )
    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="conversations",
    )
    last_message_at = models.DateTimeField(null=True, blank=True)
    last_message_preview = models.CharField(max_length=PREVIEW_LENGTH, blank=True)
    client_unread_count = models.PositiveIntegerField(default=0)
    freelancer_unread_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Conversation")
        verbose_name_plural = _("Conversations")
        ordering = [models.F("last_message_at").desc(nulls_last=True), "-created_at"]
        indexes = [
            models.Index(fields=["client", "-last_message_at"]),
            models.Index(fields=["freelancer", "-last_message_at"]),
        ]
        constraints = [
            models.CheckConstraint(
                check=~models.Q(client=models.F("freelancer")),
                name="conversation_different_users",
            )
        ]

    def __str__(self) -> str:
        context = f" (booking: {self.booking_id})" if self.booking_id else ""
        return f"Conversation between {self.client_id} and {self.freelancer_id}{context}"

    def has_participant(self, user) -> bool:
        return user.id in (self.client_id, self.freelancer_id)

    def get_other_user(self, user):
        if user.id == self.client_id:
            return self.freelancer
        if user.id == self.freelancer_id:
            return self.client
        return None

    def get_unread_count(self, user) -> int:
        if user.id == self.client_id:
            return self.client_unread_count
        if user.id == self.freelancer_id:
            return self.freelancer_unread_count
        return 0

    def mark_as_read(self, user) -> None:
        if user.id == self.client_id:
            self.client_unread_count = 0
            self.save(update_fields=["client_unread_count"])
        elif user.id == self.freelancer_id:
            self.freelancer_unread_count = 0
            self.save(update_fields=["freelancer_unread_count"])


class Message(models.Model):
    class MessageType(models.TextChoices):
        TEXT = "text", _("Text")
        IMAGE = "image", _("Image")

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="messages",
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_messages",
    )
    content = models.TextField()
    message_type = models.CharField(max_length=10, choices=MessageType.choices, default=MessageType.TEXT)
    read_at = models.DateTimeField(null=True, blank=True)
    sent_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Message")
        verbose_name_plural = _("Messages")
        ordering = ["sent_at", "id"]
        indexes = [
            models.Index(fields=["conversation", "sent_at"]),
            models.Index(fields=["conversation", "read_at"]),
        ]

    def __str__(self) -> str:
        preview = self.content[:50] + "..." if len(self.content) > 50 else self.content
        return f"Message from {self.sender_id} at {self.sent_at}: {preview}"

    def save(self, *args, **kwargs):
        """Update the conversation's preview and the recipient's unread count."""
        is_new = self.pk is None
        super().save(*args, **kwargs)

        if is_new:
            conversation = self.conversation
            conversation.last_message_at = self.sent_at
            conversation.last_message_preview = self.content[:PREVIEW_LENGTH]
            if self.sender_id == conversation.client_id:
                conversation.freelancer_unread_count = models.F("freelancer_unread_count") + 1
            else:
                conversation.client_unread_count = models.F("client_unread_count") + 1
            conversation.save(
                update_fields=[
                    "last_message_at",
                    "last_message_preview",
                    "client_unread_count",
                    "freelancer_unread_count",
                    "updated_at",
                ]
            )
            conversation.refresh_from_db(fields=["client_unread_count", "freelancer_unread_count"])

    @property
    def is_read(self) -> bool:
        return self.read_at is not None

    def mark_as_read(self) -> None:
        if self.read_at is None:
            self.read_at = timezone.now()
            self.save(update_fields=["read_at"])
