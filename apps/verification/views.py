"""Verification API.

Endpoints:
- GET /api/v1/verification/ - the freelancer's own status
- POST /api/v1/verification/ - submit details and an ID document (multipart)
- GET /api/v1/verification/admin/?status= - review queue
- GET /api/v1/verification/admin/{id}/ - one submission with its history
- POST /api/v1/verification/admin/{id}/approve/
- POST /api/v1/verification/admin/{id}/reject/
"""

from __future__ import annotations

from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.parsers import FormParser, MultiPartParser  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.users.api.permissions import IsActiveAccount, IsFreelancer, IsPlatformAdmin

from .models import FreelancerVerification
from .serializers import (
    AdminVerificationSerializer,
    ApproveSerializer,
    RejectSerializer,
    VerificationStatusSerializer,
    VerificationSubmitSerializer,
)
from .services import UNVERIFIED, VerificationError, approve_verification, reject_verification, submit_verification


class FreelancerVerificationView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsFreelancer, IsActiveAccount]
    parser_classes = [MultiPartParser, FormParser]

    def get(self, request):  # type: ignore
        record = FreelancerVerification.objects.filter(freelancer=request.user).first()
        if record is None:
            return Response({"status": UNVERIFIED})
        return Response(VerificationStatusSerializer(record).data)

    def post(self, request):  # type: ignore
        serializer = VerificationSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        details = dict(serializer.validated_data)
        try:
            record = submit_verification(request.user, id_document=details.pop("id_document"), **details)
        except VerificationError as exc:
            return Response({"detail": str(exc)}, status=exc.status_code)
        return Response(VerificationStatusSerializer(record).data, status=status.HTTP_201_CREATED)


class AdminVerificationViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = AdminVerificationSerializer
    permission_classes = [permissions.IsAuthenticated, IsPlatformAdmin]
    queryset = FreelancerVerification.objects.select_related("freelancer", "reviewed_by")
    filterset_fields = ["status", "id_document_type"]

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):  # type: ignore
        record = self.get_object()
        serializer = ApproveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            approve_verification(record, actor=request.user, notes=serializer.validated_data["notes"])
        except VerificationError as exc:
            return Response({"detail": str(exc)}, status=exc.status_code)
        return Response(AdminVerificationSerializer(record).data)

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):  # type: ignore
        record = self.get_object()
        serializer = RejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            reject_verification(record, serializer.validated_data["rejection_note"], actor=request.user)
        except VerificationError as exc:
            return Response({"detail": str(exc)}, status=exc.status_code)
        return Response(AdminVerificationSerializer(record).data)
