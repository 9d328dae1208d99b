"""Conversation API.

Endpoints:
- GET /api/v1/conversations/ - the current user's inbox
- POST /api/v1/conversations/ - a client opens a thread with a freelancer
- GET /api/v1/conversations/{id}/ - one thread
- GET /api/v1/conversations/{id}/messages/?before=&limit= - read messages
- POST /api/v1/conversations/{id}/messages/ - send a message
"""

from __future__ import annotations

from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.api.permissions import IsActiveAccount, IsClient

from .serializers import (
    ConversationCreateSerializer,
    ConversationSerializer,
    MessageCreateSerializer,
    MessageQuerySerializer,
    MessageSerializer,
)
from .services import ConversationError, read_messages, send_message, start_conversation, visible_conversations


class ConversationViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = ConversationSerializer
    permission_classes = [permissions.IsAuthenticated, IsActiveAccount]
    filterset_fields = ["booking"]

    def get_permissions(self):  # type: ignore
        if self.action == "create":
            return [permissions.IsAuthenticated(), IsActiveAccount(), IsClient()]
        return super().get_permissions()

    def get_queryset(self):  # type: ignore
        return visible_conversations(self.request.user)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = ConversationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            result = start_conversation(
                request.user,
                data["freelancer_id"],
                booking_id=data.get("booking_id"),
                initial_message=data["initial_message"],
            )
        except ConversationError as exc:
            return Response({"detail": str(exc)}, status=exc.status_code)
        return Response(
            ConversationSerializer(result.conversation, context={"request": request}).data,
            status=status.HTTP_201_CREATED if result.created else status.HTTP_200_OK,
        )

    @action(detail=True, methods=["get", "post"])
    def messages(self, request, pk=None):  # type: ignore
        conversation = self.get_object()
        if request.method == "GET":
            query = MessageQuerySerializer(data=request.query_params)
            query.is_valid(raise_exception=True)
            page = read_messages(
                conversation,
                request.user,
                before=query.validated_data.get("before"),
                limit=query.validated_data.get("limit"),
            )
            return Response(
                {"messages": MessageSerializer(page.messages, many=True).data, "has_more": page.has_more}
            )

        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            message = send_message(
                conversation,
                request.user,
                serializer.validated_data["content"],
                serializer.validated_data["message_type"],
            )
        except ConversationError as exc:
            return Response({"detail": str(exc)}, status=exc.status_code)
        return Response(MessageSerializer(message).data, status=status.HTTP_201_CREATED)
