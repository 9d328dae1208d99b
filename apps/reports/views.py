"""Report API.

Users file reports about other users and see the ones they filed;
admins see every report, move it through review and act on the
reported account.
"""

from __future__ import annotations

from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.api.permissions import IsActiveAccount, IsPlatformAdmin, is_platform_admin
from apps.users.services import ModerationError

from .models import Report
from .serializers import (
    AccountActionSerializer,
    AdminReportSerializer,
    ReportCreateSerializer,
    ReportSerializer,
    ReportStatusSerializer,
)
from .services import ReportError, submit_report, take_account_action, update_report_status

ADMIN_ACTIONS = {"change_status", "account_action"}


class ReportViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    permission_classes = [permissions.IsAuthenticated, IsActiveAccount]
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    filterset_fields = ["status", "issue_type", "reported_user"]

    def get_permissions(self):  # type: ignore
        if self.action in ADMIN_ACTIONS:
            return [permissions.IsAuthenticated(), IsPlatformAdmin()]
        return super().get_permissions()

    def get_serializer_class(self):  # type: ignore
        if is_platform_admin(self.request.user):
            return AdminReportSerializer
        return ReportSerializer

    def get_queryset(self):  # type: ignore
        qs = Report.objects.select_related("reporter", "reported_user", "booking")
        if is_platform_admin(self.request.user):
            return qs.prefetch_related("admin_actions__admin")
        return qs.filter(reporter=self.request.user)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = ReportCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            report = submit_report(
                request.user,
                data["reported_user"],
                data["issue_type"],
                data["description"],
                booking_id=data.get("booking"),
                attachment=data.get("attachment"),
            )
        except ReportError as exc:
            return Response({"detail": str(exc)}, status=exc.status_code)
        return Response(ReportSerializer(report).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["patch"], url_path="status", url_name="status")
    def change_status(self, request, pk=None):  # type: ignore
        report = self.get_object()
        serializer = ReportStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        update_report_status(
            report,
            serializer.validated_data["status"],
            actor=request.user,
            notes=serializer.validated_data["notes"],
        )
        return Response(AdminReportSerializer(report).data)

    @action(detail=True, methods=["post"], url_path="account-action", url_name="account-action")
    def account_action(self, request, pk=None):  # type: ignore
        report = self.get_object()
        serializer = AccountActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            new_status = take_account_action(
                report,
                data["action"],
                data["reason"],
                actor=request.user,
                notes=data["notes"],
            )
        except (ReportError, ModerationError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response({"account_status": new_status, "report": AdminReportSerializer(report).data})
