"""Availability API views."""

from __future__ import annotations

from django.db import transaction  # type: ignore
from django.shortcuts import get_object_or_404  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.catalog.models import Service
from apps.users.api.permissions import IsActiveAccount, IsFreelancer

from .models import AvailabilityException, AvailabilityRule
from .serializers import (
    AvailabilityExceptionSerializer,
    AvailabilityRuleListSerializer,
    AvailabilityRuleSerializer,
    AvailabilitySettingsSerializer,
    SlotQuerySerializer,
)
from .slots import settings_for, slots_for_service


class FreelancerScheduleMixin:
    """Own-schedule endpoints are limited to freelancers."""

    permission_classes = [permissions.IsAuthenticated, IsFreelancer, IsActiveAccount]

    def get_freelancer(self):
        return self.request.user


class AvailabilityRulesView(FreelancerScheduleMixin, APIView):
    """GET the weekly rules; PUT replaces the whole list."""

    def get(self, request):  # type: ignore
        rules = AvailabilityRule.objects.filter(freelancer=self.get_freelancer())
        return Response({"rules": AvailabilityRuleSerializer(rules, many=True).data})

    def put(self, request):  # type: ignore
        serializer = AvailabilityRuleListSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        freelancer = self.get_freelancer()
        with transaction.atomic():
            AvailabilityRule.objects.filter(freelancer=freelancer).delete()
            AvailabilityRule.objects.bulk_create(
                AvailabilityRule(freelancer=freelancer, **rule)
                for rule in serializer.validated_data["rules"]
            )
        rules = AvailabilityRule.objects.filter(freelancer=freelancer)
        return Response({"rules": AvailabilityRuleSerializer(rules, many=True).data})


class AvailabilityExceptionViewSet(FreelancerScheduleMixin, viewsets.ModelViewSet):
    """Date exceptions of the current freelancer, filterable by date range."""

    serializer_class = AvailabilityExceptionSerializer

    def get_queryset(self):  # type: ignore
        qs = AvailabilityException.objects.filter(freelancer=self.get_freelancer())
        start = self.request.query_params.get("start")
        end = self.request.query_params.get("end")
        if start:
            qs = qs.filter(date__gte=start)
        if end:
            qs = qs.filter(date__lte=end)
        return qs

    def perform_create(self, serializer):  # type: ignore
        serializer.save(freelancer=self.get_freelancer())


class AvailabilitySettingsView(FreelancerScheduleMixin, APIView):
    def get(self, request):  # type: ignore
        config = settings_for(self.get_freelancer())
        return Response(AvailabilitySettingsSerializer(config).data)

    def put(self, request):  # type: ignore
        return self._update(request, partial=False)

    def patch(self, request):  # type: ignore
        return self._update(request, partial=True)

    def _update(self, request, partial: bool):  # type: ignore
        config = settings_for(self.get_freelancer())
        serializer = AvailabilitySettingsSerializer(config, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)


class ServiceSlotsView(APIView):
    """Public: bookable start times of a service on one date.

    GET /api/v1/availability/slots/?service=<id>&date=YYYY-MM-DD
    """

    permission_classes = [permissions.AllowAny]

    def get(self, request):  # type: ignore
        query = SlotQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        service = get_object_or_404(
            Service.objects.select_related("freelancer"),
            pk=query.validated_data["service"],
            is_active=True,
        )
        result = slots_for_service(service, query.validated_data["date"])
        return Response(
            {
                "service": service.id,
                "date": query.validated_data["date"],
                "duration_minutes": service.duration_minutes,
                "slots": result.isoformat(),
                "reason": result.reason,
            },
            status=status.HTTP_200_OK,
        )
