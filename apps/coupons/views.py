"""Coupon API: admin CRUD and a checkout-time validation endpoint."""

from __future__ import annotations

import logging

from rest_framework import permissions, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.api.permissions import IsPlatformAdmin

from .models import DiscountCoupon
from .serializers import CouponValidateSerializer, DiscountCouponSerializer
from .services import validate_coupon

logger = logging.getLogger(__name__)


class DiscountCouponViewSet(viewsets.ModelViewSet):
    queryset = DiscountCoupon.objects.select_related("created_by")
    serializer_class = DiscountCouponSerializer
    permission_classes = [permissions.IsAuthenticated, IsPlatformAdmin]
    filterset_fields = ["is_active", "discount_type", "applicable_to"]

    def get_permissions(self):  # type: ignore
        if self.action == "validate":
            return [permissions.IsAuthenticated()]
        return super().get_permissions()

    def perform_create(self, serializer):  # type: ignore
        coupon = serializer.save(created_by=self.request.user)
        logger.info(f"Coupon {coupon.code} created by {self.request.user.email}")

    def perform_destroy(self, instance):  # type: ignore
        logger.info(f"Coupon {instance.code} deleted by {self.request.user.email}")
        instance.delete()

    @action(detail=False, methods=["post"])
    def validate(self, request):  # type: ignore
        serializer = CouponValidateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = validate_coupon(
            serializer.validated_data["code"],
            serializer.validated_data["booking_amount_pence"],
            request.user,
        )
        return Response(result.as_dict())
