"""Dispute API.

Parties list and open disputes and upload evidence; admins review,
annotate and resolve them.
"""

from __future__ import annotations

import logging

from django.db.models import Q  # type: ignore
from django.shortcuts import get_object_or_404  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.bookings.models import Booking
from apps.finances.gateway import PaymentGatewayError
from apps.finances.services import PaymentError
from apps.users.api.permissions import IsActiveAccount, IsPlatformAdmin

from .serializers import (
    DisputeAttachmentSerializer,
    DisputeAuditLogSerializer,
    DisputeCreateSerializer,
    DisputeNoteSerializer,
    DisputeResolveSerializer,
    DisputeSerializer,
    DisputeStatusSerializer,
)
from .services import (
    DisputeError,
    add_attachment,
    add_note,
    open_dispute,
    resolve_dispute,
    update_status,
    visible_disputes,
)

logger = logging.getLogger(__name__)

ADMIN_ACTIONS = {"change_status", "notes", "resolve", "audit_log"}


class DisputeViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = DisputeSerializer
    permission_classes = [permissions.IsAuthenticated, IsActiveAccount]
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    filterset_fields = ["status", "category"]

    def get_permissions(self):  # type: ignore
        if self.action in ADMIN_ACTIONS:
            return [permissions.IsAuthenticated(), IsPlatformAdmin()]
        return super().get_permissions()

    def get_queryset(self):  # type: ignore
        return visible_disputes(self.request.user).prefetch_related("attachments")

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = DisputeCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = get_object_or_404(
            Booking.objects.filter(Q(client=request.user) | Q(freelancer=request.user)),
            pk=serializer.validated_data["booking"],
        )
        try:
            dispute = open_dispute(
                booking,
                request.user,
                serializer.validated_data["category"],
                serializer.validated_data["description"],
            )
        except DisputeError as exc:
            return Response({"detail": str(exc)}, status=exc.status_code)
        return Response(DisputeSerializer(dispute).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def attachments(self, request, pk=None):  # type: ignore
        dispute = self.get_object()
        upload = request.FILES.get("file")
        if upload is None:
            return Response({"file": ["No file was submitted."]}, status=status.HTTP_400_BAD_REQUEST)
        try:
            attachment = add_attachment(dispute, request.user, upload, request.data.get("description", ""))
        except DisputeError as exc:
            return Response({"detail": str(exc)}, status=exc.status_code)
        return Response(DisputeAttachmentSerializer(attachment).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["patch"], url_path="status", url_name="status")
    def change_status(self, request, pk=None):  # type: ignore
        dispute = self.get_object()
        serializer = DisputeStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            update_status(dispute, serializer.validated_data["status"], actor=request.user)
        except DisputeError as exc:
            return Response({"detail": str(exc)}, status=exc.status_code)
        return Response(DisputeSerializer(dispute).data)

    @action(detail=True, methods=["get", "post"])
    def notes(self, request, pk=None):  # type: ignore
        dispute = self.get_object()
        if request.method == "GET":
            return Response(DisputeNoteSerializer(dispute.notes.select_related("author"), many=True).data)
        serializer = DisputeNoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        note = add_note(dispute, serializer.validated_data["note"], actor=request.user)
        return Response(DisputeNoteSerializer(note).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def resolve(self, request, pk=None):  # type: ignore
        dispute = self.get_object()
        serializer = DisputeResolveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            resolve_dispute(
                dispute,
                data["resolution_type"],
                actor=request.user,
                amount_pence=data.get("resolution_amount_pence"),
                notes=data["resolution_notes"],
                suspend_user=data.get("suspend_user"),
                suspension_reason=data["suspension_reason"],
            )
        except (DisputeError, PaymentError) as exc:
            return Response({"detail": str(exc)}, status=getattr(exc, "status_code", status.HTTP_400_BAD_REQUEST))
        except PaymentGatewayError as exc:
            logger.error(f"Resolving dispute {dispute.id} failed at the payment gateway: {exc}")
            return Response({"detail": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)
        dispute.refresh_from_db()
        return Response(DisputeSerializer(dispute).data)

    @action(detail=True, methods=["get"], url_path="audit-log")
    def audit_log(self, request, pk=None):  # type: ignore
        dispute = self.get_object()
        return Response(DisputeAuditLogSerializer(dispute.audit_logs.all(), many=True).data)
