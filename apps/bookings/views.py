"""API views for the booking domain."""

from __future__ import annotations

import logging

from django.db.models import Count  # type: ignore
from django.shortcuts import get_object_or_404  # type: ignore
from django.utils import timezone  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.finances.gateway import PaymentGatewayError
from apps.finances.services import PaymentError
from apps.users.api.permissions import IsActiveAccount, IsClient, is_platform_admin

from .models import Booking, RescheduleRequest
from .serializers import (
    BookingAuditLogSerializer,
    BookingCreateSerializer,
    BookingSerializer,
    ReasonSerializer,
    RescheduleCreateSerializer,
    RescheduleRequestSerializer,
    RescheduleRespondSerializer,
)
from .services import (
    BookingError,
    accept_booking,
    cancel_booking,
    create_booking,
    decline_booking,
    request_reschedule,
    respond_to_reschedule,
)

logger = logging.getLogger(__name__)

UPCOMING_STATUSES = (Booking.Status.PENDING, Booking.Status.CONFIRMED)


def _error_response(exc: Exception) -> Response:
    if isinstance(exc, BookingError):
        return Response({"detail": str(exc)}, status=exc.status_code)
    if isinstance(exc, PaymentGatewayError):
        return Response({"detail": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


class BookingViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Bookings seen by their client, their freelancer and admins."""

    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated, IsActiveAccount]
    filterset_fields = ["status", "payment_status", "service"]

    def get_permissions(self):  # type: ignore
        if self.action == "create":
            return [permissions.IsAuthenticated(), IsClient()]
        return super().get_permissions()

    def get_queryset(self):  # type: ignore
        user = self.request.user
        qs = Booking.objects.select_related("client", "freelancer", "service")
        if not is_platform_admin(user):
            if user.is_freelancer():
                qs = qs.filter(freelancer=user)
            else:
                qs = qs.filter(client=user)

        upcoming = self.request.query_params.get("upcoming")
        if upcoming is not None:
            now = timezone.now()
            if upcoming.lower() in {"true", "1"}:
                qs = qs.filter(start_datetime__gte=now, status__in=UPCOMING_STATUSES).order_by("start_datetime")
            else:
                qs = qs.filter(start_datetime__lt=now)
        return qs

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        try:
            result = create_booking(
                request.user,
                service_id=data.pop("service"),
                start=data.pop("start_datetime"),
                **data,
            )
        except (BookingError, PaymentGatewayError) as exc:
            return _error_response(exc)
        return Response(
            {
                "detail": "Booking created. Please complete payment to confirm your booking.",
                "booking": BookingSerializer(result.booking).data,
                "price_breakdown": result.price.as_dict(),
                "requires_payment": True,
                "payment_intent_id": result.payment_intent.payment_intent_id,
                "client_secret": result.payment_intent.client_secret,
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["post"])
    def accept(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        try:
            accept_booking(booking, request.user)
        except BookingError as exc:
            return _error_response(exc)
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=["post"])
    def decline(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = ReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            decline_booking(booking, request.user, serializer.validated_data["reason"])
        except (BookingError, PaymentError, PaymentGatewayError) as exc:
            return _error_response(exc)
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = ReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            outcome = cancel_booking(booking, request.user, serializer.validated_data["reason"])
        except (BookingError, PaymentError, PaymentGatewayError) as exc:
            return _error_response(exc)
        return Response(
            {
                "status": outcome.booking.status,
                "payment_status": outcome.booking.payment_status,
                "refund_percentage": outcome.refund.refund_percentage,
                "refund_amount_pence": outcome.refunded_pence,
                "applied_policy": outcome.refund.applied_policy,
                "hours_before_service": outcome.refund.hours_before_service,
                "reliability_warning": outcome.reliability_warning,
            }
        )

    @action(detail=True, methods=["get", "post"])
    def reschedule(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        if request.method == "GET":
            requests = booking.reschedule_requests.all()
            return Response(RescheduleRequestSerializer(requests, many=True).data)

        serializer = RescheduleCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            reschedule = request_reschedule(
                booking,
                request.user,
                serializer.validated_data["new_start_datetime"],
                serializer.validated_data["new_end_datetime"],
                serializer.validated_data["reason"],
            )
        except BookingError as exc:
            return _error_response(exc)
        return Response(RescheduleRequestSerializer(reschedule).data, status=status.HTTP_201_CREATED)

    @action(
        detail=True,
        methods=["post"],
        url_path=r"reschedule/(?P<request_id>\d+)/respond",
        url_name="reschedule-respond",
    )
    def respond_reschedule(self, request, pk=None, request_id=None):  # type: ignore
        booking = self.get_object()
        reschedule = get_object_or_404(RescheduleRequest, pk=request_id, booking=booking)
        serializer = RescheduleRespondSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            result = respond_to_reschedule(
                reschedule,
                request.user,
                serializer.validated_data["accept"],
                serializer.validated_data["note"],
            )
        except BookingError as exc:
            return _error_response(exc)
        payload = {
            "request": RescheduleRequestSerializer(result.request).data,
            "booking": BookingSerializer(result.request.booking).data,
            "refund_offer": result.refund_offer.as_dict() if result.refund_offer else None,
        }
        return Response(payload)

    @action(detail=True, methods=["get"], url_path="audit-log")
    def audit_log(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        return Response(BookingAuditLogSerializer(booking.audit_logs.select_related("user"), many=True).data)

    @action(detail=False, methods=["get"])
    def stats(self, request):  # type: ignore
        """Dashboard counters: bookings per status and upcoming appointments."""
        user = request.user
        qs = Booking.objects.all()
        if not is_platform_admin(user):
            qs = qs.filter(freelancer=user) if user.is_freelancer() else qs.filter(client=user)
        by_status = {value: 0 for value in Booking.Status.values}
        for row in qs.values("status").annotate(total=Count("id")):
            by_status[row["status"]] = row["total"]
        upcoming = qs.filter(start_datetime__gte=timezone.now(), status__in=UPCOMING_STATUSES).count()
        return Response({"by_status": by_status, "upcoming": upcoming, "total": sum(by_status.values())})
