"""API views for notifications."""

from __future__ import annotations

from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .models import Notification
from .serializers import NotificationSerializer


class NotificationViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """Own notifications of the authenticated user.

    ``?unread=true`` limits the list to unread rows.
    """

    serializer_class = NotificationSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):  # type: ignore
        queryset = Notification.objects.filter(user=self.request.user)
        if self.request.query_params.get('unread', '').lower() in {'1', 'true'}:
            queryset = queryset.filter(is_read=False)
        return queryset

    @action(detail=True, methods=['post'])
    def mark_read(self, request, pk=None):  # type: ignore
        notification = self.get_object()
        notification.mark_read()
        return Response({'status': 'read'}, status=status.HTTP_200_OK)

    @action(detail=False, methods=['post'])
    def mark_all_read(self, request):  # type: ignore
        updated = Notification.objects.filter(user=request.user, is_read=False).update(is_read=True)
        return Response({'updated': updated}, status=status.HTTP_200_OK)

    @action(detail=False, methods=['post'])
    def clear_read(self, request):  # type: ignore
        deleted, _ = Notification.objects.filter(user=request.user, is_read=True).delete()
        return Response({'deleted': deleted}, status=status.HTTP_200_OK)

    @action(detail=False, methods=['get'])
    def unread_count(self, request):  # type: ignore
        count = Notification.objects.filter(user=request.user, is_read=False).count()
        return Response({'unread_count': count})
