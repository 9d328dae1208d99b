"""User API views."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import mixins, permissions, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .serializers import MeUpdateSerializer, PublicFreelancerSerializer, UserSerializer

User = get_user_model()


class UserViewSet(viewsets.GenericViewSet):
    """Own account of the authenticated user.

    - `GET /users/me/` returns the profile
    - `PATCH /users/me/` updates contact details and, for freelancers,
      the public profile
    """

    serializer_class = UserSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):  # type: ignore
        return User.objects.filter(pk=self.request.user.pk)

    @action(detail=False, methods=["get", "patch"])
    def me(self, request):
        if request.method == "PATCH":
            serializer = MeUpdateSerializer(request.user, data=request.data, partial=True)
            serializer.is_valid(raise_exception=True)
            serializer.save()
        user = User.objects.select_related("freelancer_profile").get(pk=request.user.pk)
        return Response(UserSerializer(user).data)


class FreelancerViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Public directory of active freelancers, filterable by ``city``."""

    serializer_class = PublicFreelancerSerializer
    permission_classes = [permissions.AllowAny]

    def get_queryset(self):  # type: ignore
        queryset = User.objects.filter(
            role=User.RoleChoices.FREELANCER,
            status=User.AccountStatus.ACTIVE,
            is_active=True,
        ).select_related("freelancer_profile")
        city = self.request.query_params.get("city")
        if city:
            queryset = queryset.filter(freelancer_profile__city__iexact=city)
        return queryset.order_by("-freelancer_profile__average_rating", "id")
