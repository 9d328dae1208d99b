"""API views for admin user moderation."""

from __future__ import annotations

from django.db.models import Q  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.models import CustomUser
from apps.users.services import (
    ModerationError,
    reactivate_account,
    suspend_account,
    verify_client,
    verify_freelancer,
)
from .permissions import IsPlatformAdmin
from .serializers import AdminUserDetailSerializer, AdminUserListSerializer, SuspendSerializer


class AdminUserViewSet(viewsets.ReadOnlyModelViewSet):
    """
    User moderation for platform admins.

    Endpoints:
    - GET /api/v1/admin/users/?role=&status=&search= - list accounts
    - GET /api/v1/admin/users/{id}/ - account details
    - POST /api/v1/admin/users/{id}/suspend/ - suspend with a reason
    - POST /api/v1/admin/users/{id}/reactivate/ - lift a suspension
    - POST /api/v1/admin/users/{id}/verify-freelancer/ - vet a freelancer
    - POST /api/v1/admin/users/{id}/verify/ - mark contact details verified
    """

    queryset = CustomUser.objects.all()
    permission_classes = [permissions.IsAuthenticated, IsPlatformAdmin]
    filterset_fields = ["role", "status", "is_verified", "is_verified_freelancer"]

    def get_serializer_class(self) -> type:  # type: ignore
        if self.action == "list":
            return AdminUserListSerializer  # type: ignore
        return AdminUserDetailSerializer  # type: ignore

    def get_queryset(self):  # type: ignore
        queryset = super().get_queryset()
        search = self.request.query_params.get("search")
        if search:
            queryset = queryset.filter(
                Q(email__icontains=search)
                | Q(first_name__icontains=search)
                | Q(last_name__icontains=search)
                | Q(phone__icontains=search)
            )
        return queryset

    def _moderate(self, func, *args, **kwargs) -> Response:
        account = self.get_object()
        try:
            func(account, *args, actor=self.request.user, **kwargs)
        except ModerationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        account.refresh_from_db()
        return Response(AdminUserDetailSerializer(account).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"])
    def suspend(self, request, pk=None):  # type: ignore
        serializer = SuspendSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._moderate(suspend_account, serializer.validated_data["reason"])

    @action(detail=True, methods=["post"])
    def reactivate(self, request, pk=None):  # type: ignore
        return self._moderate(reactivate_account)

    @action(detail=True, methods=["post"], url_path="verify-freelancer")
    def verify_freelancer(self, request, pk=None):  # type: ignore
        return self._moderate(verify_freelancer)

    @action(detail=True, methods=["post"])
    def verify(self, request, pk=None):  # type: ignore
        return self._moderate(verify_client)
