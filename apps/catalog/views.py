"""Catalog API views."""

from __future__ import annotations

import logging

from django.db.models import Q  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.filters import OrderingFilter  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.notifications.models import Notification
from apps.notifications.services import send_notification
from apps.users.api.permissions import (
    IsActiveAccount,
    IsFreelancerOrReadOnly,
    IsOwnerFreelancer,
    IsPlatformAdmin,
    is_platform_admin,
)

from .filters import ServiceFilterSet
from .models import Service, ServicePackage, Style
from .serializers import (
    ServiceModerationSerializer,
    ServicePackageSerializer,
    ServiceSerializer,
    ServiceWriteSerializer,
    StyleSerializer,
)

logger = logging.getLogger(__name__)


class StyleViewSet(viewsets.ModelViewSet):
    """Style taxonomy. Public read, admin write."""

    serializer_class = StyleSerializer
    pagination_class = None

    def get_permissions(self):  # type: ignore
        if self.action in {"list", "retrieve"}:
            return [permissions.AllowAny()]
        return [permissions.IsAuthenticated(), IsPlatformAdmin()]

    def get_queryset(self):  # type: ignore
        qs = Style.objects.all()
        if not is_platform_admin(self.request.user):
            qs = qs.filter(is_active=True)
        return qs


class ServiceViewSet(viewsets.ModelViewSet):
    """Freelancer services.

    Clients and visitors see active services of active freelancers; a
    freelancer additionally sees their own inactive ones; admins see all.
    """

    permission_classes = [IsFreelancerOrReadOnly, IsActiveAccount, IsOwnerFreelancer]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = ServiceFilterSet
    ordering_fields = ["base_price_pence", "duration_minutes", "created_at"]

    def get_queryset(self):  # type: ignore
        qs = Service.objects.select_related("freelancer", "style")
        user = self.request.user
        if is_platform_admin(user):
            return qs
        public = Q(is_active=True, freelancer__status="active", freelancer__is_active=True)
        if user.is_authenticated and hasattr(user, "is_freelancer") and user.is_freelancer():
            return qs.filter(public | Q(freelancer=user))
        return qs.filter(public)

    def get_serializer_class(self):  # type: ignore
        if self.action in {"create", "update", "partial_update"}:
            return ServiceWriteSerializer
        return ServiceSerializer

    def create(self, request, *args, **kwargs):  # type: ignore
        if not request.user.is_freelancer():
            return Response(
                {"detail": "Only freelancers can create services."},
                status=status.HTTP_403_FORBIDDEN,
            )
        serializer = ServiceWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        service = serializer.save(freelancer=request.user)
        logger.info(f"Service {service.id} created by {request.user.email}")
        return Response(ServiceSerializer(service).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):  # type: ignore
        partial = kwargs.pop("partial", False)
        service = self.get_object()
        serializer = ServiceWriteSerializer(service, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        if serializer.validated_data.get("is_active") and service.deactivated_by_admin:
            return Response(
                {"detail": "This service was deactivated by an admin and cannot be reactivated."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        service = serializer.save()
        return Response(ServiceSerializer(service).data)

    @action(detail=True, methods=["post"])
    def activate(self, request, pk=None):  # type: ignore
        service = self.get_object()
        if service.deactivated_by_admin and not is_platform_admin(request.user):
            return Response(
                {"detail": "This service was deactivated by an admin and cannot be reactivated."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        service.activate()
        return Response(ServiceSerializer(service).data)

    @action(detail=True, methods=["post"])
    def deactivate(self, request, pk=None):  # type: ignore
        service = self.get_object()
        service.deactivate()
        return Response(ServiceSerializer(service).data)

    @action(detail=True, methods=["post"])
    def duplicate(self, request, pk=None):  # type: ignore
        """Copy the service as a new, inactive draft."""
        service = self.get_object()
        if service.freelancer_id != request.user.id:
            return Response(
                {"detail": "You can only duplicate your own services."},
                status=status.HTTP_403_FORBIDDEN,
            )
        copy = Service.objects.get(pk=service.pk)
        copy.pk = None
        copy.name = f"{service.name} (copy)"
        copy.is_active = False
        copy.deactivated_by_admin = False
        copy.moderation_note = ""
        copy.save()
        return Response(ServiceSerializer(copy).data, status=status.HTTP_201_CREATED)

    @action(
        detail=True,
        methods=["post"],
        url_path="admin-deactivate",
        permission_classes=[permissions.IsAuthenticated, IsPlatformAdmin],
    )
    def admin_deactivate(self, request, pk=None):  # type: ignore
        service = self.get_object()
        serializer = ServiceModerationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reason = serializer.validated_data["reason"]
        service.deactivate(by_admin=True, note=reason)
        logger.info(f"Service {service.id} deactivated by admin {request.user.email}: {reason}")
        send_notification(
            service.freelancer,
            Notification.Type.ACCOUNT,
            "Service Deactivated",
            f'Your service "{service.name}" was deactivated by our team. Reason: {reason}',
            {"service_id": service.id},
        )
        return Response(ServiceSerializer(service).data)


class ServicePackageViewSet(viewsets.ModelViewSet):
    """Service packages. Public read of active packages, owner write."""

    serializer_class = ServicePackageSerializer
    permission_classes = [IsFreelancerOrReadOnly, IsActiveAccount, IsOwnerFreelancer]
    filterset_fields = ["freelancer", "is_active"]

    def get_queryset(self):  # type: ignore
        qs = ServicePackage.objects.prefetch_related("items__service")
        user = self.request.user
        if is_platform_admin(user):
            return qs
        if user.is_authenticated and hasattr(user, "is_freelancer") and user.is_freelancer():
            return qs.filter(Q(is_active=True) | Q(freelancer=user))
        return qs.filter(is_active=True)

    def perform_create(self, serializer):  # type: ignore
        serializer.save(freelancer=self.request.user)

    @action(detail=True, methods=["get"], url_path="price-summary", permission_classes=[permissions.AllowAny])
    def price_summary(self, request, pk=None):  # type: ignore
        package = self.get_object()
        return Response(package.price_summary())
