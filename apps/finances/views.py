"""API views for booking payments.

Payments are addressed by booking id: ``/payments/<booking_id>/`` shows
the payment, with ``confirm-service`` and ``refund`` actions. The Stripe
webhook is public and authenticated by its signature.
"""

from __future__ import annotations

import logging

from django.db import IntegrityError, transaction  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.exceptions import PermissionDenied  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.users.api.permissions import IsActiveAccount, is_platform_admin

from . import gateway
from .models import Payment, PaymentWebhookEvent
from .serializers import PaymentSerializer, RefundRequestSerializer
from .services import PaymentError, handle_webhook_event, refund_booking, release_escrow, visible_payments

logger = logging.getLogger(__name__)


class PaymentViewSet(viewsets.ReadOnlyModelViewSet):
    """Payment status for the parties of a booking and for admins."""

    serializer_class = PaymentSerializer
    permission_classes = [permissions.IsAuthenticated, IsActiveAccount]
    lookup_field = "booking"
    lookup_url_kwarg = "booking_id"
    filterset_fields = ["status", "escrow_status"]

    def get_queryset(self):  # type: ignore
        return visible_payments(self.request.user)

    def _require_client_or_admin(self, payment: Payment) -> None:
        user = self.request.user
        if payment.booking.client_id != user.id and not is_platform_admin(user):
            raise PermissionDenied("Only the client or an admin can do this.")

    @action(detail=True, methods=["post"], url_path="confirm-service")
    def confirm_service(self, request, booking_id=None):  # type: ignore
        payment = self.get_object()
        self._require_client_or_admin(payment)
        try:
            payment = release_escrow(payment.booking, actor=request.user)
        except PaymentError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(
            {
                "detail": "Service confirmed. Payment released to freelancer.",
                "payment": PaymentSerializer(payment).data,
            }
        )

    @action(detail=True, methods=["post"])
    def refund(self, request, booking_id=None):  # type: ignore
        payment = self.get_object()
        self._require_client_or_admin(payment)
        serializer = RefundRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            with transaction.atomic():
                payment = refund_booking(
                    payment.booking,
                    serializer.validated_data.get("amount_pence"),
                    actor=request.user,
                    reason=serializer.validated_data["reason"],
                    settle=False,
                )
        except PaymentError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except gateway.PaymentGatewayError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)
        full = payment.is_fully_refunded
        return Response(
            {
                "refund_id": payment.refund_id,
                "amount_pence": payment.refund_amount_pence,
                "detail": f"{'Full' if full else 'Partial'} refund initiated successfully",
            }
        )


class StripeWebhookView(APIView):
    authentication_classes: list = []
    permission_classes = [permissions.AllowAny]

    def post(self, request):  # type: ignore
        try:
            event = gateway.parse_webhook(request.body, request.headers.get("Stripe-Signature"))
        except gateway.WebhookVerificationError as exc:
            logger.warning(f"Rejected webhook: {exc}")
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        # Stored before handling so a failure keeps the event and its error;
        # Stripe's retry of a failed event is processed again.
        try:
            record, _ = PaymentWebhookEvent.objects.get_or_create(
                event_id=event["id"],
                defaults={"event_type": event["type"], "payload": event},
            )
        except IntegrityError:
            return Response({"received": True, "duplicate": True})
        if record.processed_at is not None:
            return Response({"received": True, "duplicate": True})

        try:
            with transaction.atomic():
                handle_webhook_event(event)
                record.mark_processed()
        except Exception as e:
            logger.error(f"Error handling webhook event {event['id']}: {e}", exc_info=True)
            record.mark_failed(f"{type(e).__name__}: {e}")
            return Response({"detail": "Webhook processing failed."}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response({"received": True})
