"""API views for managing reviews."""

from __future__ import annotations

from django.shortcuts import get_object_or_404  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.bookings.models import Booking
from apps.users.api.permissions import IsActiveAccount, IsPlatformAdmin, is_platform_admin

from .models import Review
from .serializers import (
    FreelancerResponseSerializer,
    ReviewCreateSerializer,
    ReviewRemovalSerializer,
    ReviewSerializer,
)
from .services import ReviewError, create_review, remove_review, respond_to_review, restore_review


class ReviewViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Public listing of a freelancer's reviews, plus client and admin actions."""

    serializer_class = ReviewSerializer
    permission_classes = [permissions.IsAuthenticatedOrReadOnly, IsActiveAccount]
    filterset_fields = ["freelancer", "rating"]

    def get_permissions(self):  # type: ignore
        if self.action in {"remove", "restore"}:
            return [permissions.IsAuthenticated(), IsPlatformAdmin()]
        return super().get_permissions()

    def get_queryset(self):  # type: ignore
        qs = Review.objects.select_related("client", "booking__service")
        # Admins see removed reviews too
        if is_platform_admin(self.request.user):
            return qs
        return qs.filter(is_removed=False)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = ReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = get_object_or_404(Booking, pk=serializer.validated_data["booking"], client=request.user)
        try:
            review = create_review(
                booking,
                request.user,
                serializer.validated_data["rating"],
                serializer.validated_data["text"],
            )
        except ReviewError as exc:
            return Response({"detail": str(exc)}, status=exc.status_code)
        return Response(ReviewSerializer(review).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def respond(self, request, pk=None):  # type: ignore
        """Freelancer's one-off public answer to a review."""
        review = self.get_object()
        serializer = FreelancerResponseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            respond_to_review(review, request.user, serializer.validated_data["response"])
        except ReviewError as exc:
            return Response({"detail": str(exc)}, status=exc.status_code)
        return Response(ReviewSerializer(review).data)

    @action(detail=True, methods=["post"])
    def remove(self, request, pk=None):  # type: ignore
        review = self.get_object()
        serializer = ReviewRemovalSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        remove_review(review, request.user, serializer.validated_data["reason"])
        return Response(ReviewSerializer(review).data)

    @action(detail=True, methods=["post"])
    def restore(self, request, pk=None):  # type: ignore
        review = self.get_object()
        restore_review(review, request.user)
        return Response(ReviewSerializer(review).data)
