"""Serializers for conversations and messages."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Conversation, Message
from .services import MAX_MESSAGE_LENGTH, MAX_PAGE_SIZE


class MessageSerializer(serializers.ModelSerializer):
    is_read = serializers.BooleanField(read_only=True)

    class Meta:
        model = Message
        fields = ["id", "conversation", "sender", "content", "message_type", "is_read", "read_at", "sent_at"]
        read_only_fields = fields


class ConversationSerializer(serializers.ModelSerializer):
    """Inbox row as seen by the requesting participant."""

    other_user_id = serializers.SerializerMethodField()
    other_user_name = serializers.SerializerMethodField()
    unread_count = serializers.SerializerMethodField()
    booking_service_name = serializers.SerializerMethodField()

    class Meta:
        model = Conversation
        fields = [
            "id",
            "client",
            "freelancer",
            "booking",
            "booking_service_name",
            "other_user_id",
            "other_user_name",
            "unread_count",
            "last_message_preview",
            "last_message_at",
            "created_at",
        ]
        read_only_fields = fields

    def _viewer(self):
        request = self.context.get("request")
        return getattr(request, "user", None)

    def get_other_user_id(self, obj):  # type: ignore
        viewer = self._viewer()
        other = obj.get_other_user(viewer) if viewer else None
        return other.id if other else None

    def get_other_user_name(self, obj):  # type: ignore
        viewer = self._viewer()
        other = obj.get_other_user(viewer) if viewer else None
        return other.display_name if other else ""

    def get_unread_count(self, obj):  # type: ignore
        viewer = self._viewer()
        return obj.get_unread_count(viewer) if viewer else 0

    def get_booking_service_name(self, obj):  # type: ignore
        return obj.booking.service.name if obj.booking_id else None


class ConversationCreateSerializer(serializers.Serializer):
    freelancer_id = serializers.IntegerField()
    booking_id = serializers.IntegerField(required=False, allow_null=True)
    initial_message = serializers.CharField(
        required=False, allow_blank=True, default="", max_length=MAX_MESSAGE_LENGTH
    )


class MessageCreateSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=MAX_MESSAGE_LENGTH)
    message_type = serializers.ChoiceField(choices=Message.MessageType.choices, default=Message.MessageType.TEXT)


class MessageQuerySerializer(serializers.Serializer):
    before = serializers.IntegerField(required=False, min_value=1)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=MAX_PAGE_SIZE)
