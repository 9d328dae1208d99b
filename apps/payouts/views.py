"""Payout API views: freelancer self-service and admin management."""

from __future__ import annotations

import logging

from django.conf import settings  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.finances.gateway import PaymentGatewayError
from apps.users.api.permissions import IsActiveAccount, IsFreelancer, IsPlatformAdmin

from .models import Payout, PayoutAccount, PayoutSchedule, PayoutSettings
from .serializers import (
    AdminPayoutSerializer,
    OnboardingSerializer,
    PayoutAccountSerializer,
    PayoutOverrideSerializer,
    PayoutScheduleSerializer,
    PayoutSerializer,
    PayoutSettingsSerializer,
)
from .services import (
    PayoutError,
    get_earnings,
    open_payout_account,
    override_payout,
    process_payout_now,
    refresh_account_status,
    schedule_type_for,
)

logger = logging.getLogger(__name__)


class FreelancerPayoutMixin:
    permission_classes = [permissions.IsAuthenticated, IsFreelancer, IsActiveAccount]


class PayoutAccountView(FreelancerPayoutMixin, APIView):
    def get(self, request):  # type: ignore
        account = PayoutAccount.objects.filter(freelancer=request.user).first()
        if account is None:
            return Response({"detail": "No payout account yet."}, status=status.HTTP_404_NOT_FOUND)
        return Response(PayoutAccountSerializer(account).data)

    def post(self, request):  # type: ignore
        serializer = OnboardingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return_url = serializer.validated_data.get("return_url") or f"{settings.SITE_URL}/freelancer/payouts"
        refresh_url = serializer.validated_data.get("refresh_url") or f"{settings.SITE_URL}/freelancer/payouts/refresh"
        try:
            account, url = open_payout_account(request.user, refresh_url=refresh_url, return_url=return_url)
        except PayoutError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        except PaymentGatewayError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)
        return Response(
            {"account_id": account.stripe_account_id, "onboarding_url": url},
            status=status.HTTP_201_CREATED,
        )


class PayoutAccountRefreshView(FreelancerPayoutMixin, APIView):
    def post(self, request):  # type: ignore
        account = PayoutAccount.objects.filter(freelancer=request.user).first()
        if account is None:
            return Response({"detail": "No payout account yet."}, status=status.HTTP_404_NOT_FOUND)
        try:
            account = refresh_account_status(account)
        except PaymentGatewayError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)
        return Response(PayoutAccountSerializer(account).data)


class PayoutScheduleView(FreelancerPayoutMixin, APIView):
    def get(self, request):  # type: ignore
        return Response({"schedule_type": schedule_type_for(request.user)})

    def put(self, request):  # type: ignore
        schedule = PayoutSchedule.objects.filter(freelancer=request.user).first()
        serializer = PayoutScheduleSerializer(schedule, data=request.data)
        serializer.is_valid(raise_exception=True)
        serializer.save(freelancer=request.user)
        return Response(serializer.data)


class EarningsView(FreelancerPayoutMixin, APIView):
    def get(self, request):  # type: ignore
        return Response(get_earnings(request.user))


class PayoutHistoryViewSet(FreelancerPayoutMixin, mixins.ListModelMixin, viewsets.GenericViewSet):
    serializer_class = PayoutSerializer
    filterset_fields = ["status"]

    def get_queryset(self):  # type: ignore
        return Payout.objects.filter(freelancer=self.request.user).select_related("booking")


class AdminPayoutViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = AdminPayoutSerializer
    permission_classes = [permissions.IsAuthenticated, IsPlatformAdmin]
    filterset_fields = ["status", "freelancer", "scheduled_date"]
    queryset = Payout.objects.select_related("freelancer", "booking").prefetch_related("audit_logs__actor")

    @action(detail=True, methods=["post"])
    def override(self, request, pk=None):  # type: ignore
        payout = self.get_object()
        serializer = PayoutOverrideSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        override_payout(
            payout,
            serializer.validated_data["status"],
            serializer.validated_data["admin_notes"],
            actor=request.user,
        )
        return Response(AdminPayoutSerializer(payout).data)

    @action(detail=True, methods=["post"], url_path="process-now")
    def process_now(self, request, pk=None):  # type: ignore
        payout = self.get_object()
        try:
            process_payout_now(payout, actor=request.user)
        except PayoutError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except PaymentGatewayError as exc:
            payout.refresh_from_db()
            return Response(
                {"detail": str(exc), "payout": AdminPayoutSerializer(payout).data},
                status=status.HTTP_502_BAD_GATEWAY,
            )
        return Response(AdminPayoutSerializer(payout).data)


class PayoutSettingsView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsPlatformAdmin]

    def get(self, request):  # type: ignore
        return Response(PayoutSettingsSerializer(PayoutSettings.load()).data)

    def put(self, request):  # type: ignore
        serializer = PayoutSettingsSerializer(PayoutSettings.load(), data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        logger.info(f"Payout settings updated by {request.user.email}: {serializer.data}")
        return Response(serializer.data)
