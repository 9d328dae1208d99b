"""Policy API views.

Cancellation tiers are readable by everyone (they are shown at checkout)
and editable by admins. Reliability settings are admin-only; freelancers
can read their own cancellation record.
"""

from __future__ import annotations

import logging

from django.shortcuts import get_object_or_404  # type: ignore
from rest_framework import permissions, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.users.api.permissions import IsPlatformAdmin, is_platform_admin
from apps.users.models import CustomUser

from .models import CancellationPolicy, ReliabilityConfig
from .serializers import (
    CancellationPolicySerializer,
    PolicyBulkUpdateSerializer,
    ReliabilityConfigSerializer,
)
from .services import ensure_default_policies, get_freelancer_cancellation_stats, replace_policies

logger = logging.getLogger(__name__)


class CancellationPolicyView(APIView):
    def get_permissions(self):  # type: ignore
        if self.request.method == "GET":
            return [permissions.AllowAny()]
        return [permissions.IsAuthenticated(), IsPlatformAdmin()]

    def get(self, request):  # type: ignore
        ensure_default_policies()
        policies = CancellationPolicy.objects.all()
        return Response(CancellationPolicySerializer(policies, many=True).data)

    def put(self, request):  # type: ignore
        serializer = PolicyBulkUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        policies = replace_policies(serializer.validated_data["policies"])
        logger.info(f"Cancellation policies replaced by {request.user.email}: {len(policies)} tiers")
        return Response(CancellationPolicySerializer(policies, many=True).data)


class ReliabilityConfigView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsPlatformAdmin]

    def get(self, request):  # type: ignore
        return Response(ReliabilityConfigSerializer(ReliabilityConfig.load()).data)

    def put(self, request):  # type: ignore
        return self._update(request, partial=False)

    def patch(self, request):  # type: ignore
        return self._update(request, partial=True)

    def _update(self, request, partial: bool):
        config = ReliabilityConfig.load()
        serializer = ReliabilityConfigSerializer(config, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        logger.info(f"Reliability config updated by {request.user.email}: {serializer.data}")
        return Response(serializer.data)


class CancellationStatsView(APIView):
    """Last-minute cancellation record of the current freelancer.

    Admins may pass ``?freelancer=<id>`` to look up anyone.
    """

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):  # type: ignore
        user = request.user
        freelancer_id = request.query_params.get("freelancer")
        if freelancer_id and is_platform_admin(user):
            freelancer = get_object_or_404(
                CustomUser, pk=freelancer_id, role=CustomUser.RoleChoices.FREELANCER
            )
        elif user.is_freelancer():
            freelancer = user
        else:
            return Response(
                {"detail": "Only freelancers have cancellation statistics."},
                status=status.HTTP_403_FORBIDDEN,
            )
        stats = get_freelancer_cancellation_stats(freelancer)
        config = ReliabilityConfig.load()
        payload = stats.as_dict()
        payload.update(
            freelancer=freelancer.id,
            warning_threshold=config.warning_threshold,
            suspension_threshold=config.suspension_threshold,
            time_window_days=config.time_window_days,
        )
        return Response(payload)
