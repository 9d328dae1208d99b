"""API views for favorite freelancers."""

from __future__ import annotations

import logging

from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.api.permissions import IsClient

from .models import FavoriteFreelancer
from .serializers import FavoriteFreelancerSerializer, FavoriteToggleSerializer

logger = logging.getLogger(__name__)


class FavoriteFreelancerViewSet(
    mixins.ListModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """
    Saved freelancers of the current client.

    Endpoints:
    - GET /api/v1/favorites/ - list favorites
    - DELETE /api/v1/favorites/{id}/ - remove a favorite
    - POST /api/v1/favorites/toggle/ - add or remove by freelancer id
    """

    serializer_class = FavoriteFreelancerSerializer
    permission_classes = [permissions.IsAuthenticated, IsClient]

    def get_queryset(self):  # type: ignore
        return FavoriteFreelancer.objects.filter(client=self.request.user).select_related(
            'freelancer', 'freelancer__freelancer_profile'
        )

    @action(detail=False, methods=['post'])
    def toggle(self, request):  # type: ignore
        serializer = FavoriteToggleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        freelancer_id = serializer.validated_data['freelancer_id']

        deleted, _ = FavoriteFreelancer.objects.filter(
            client=request.user, freelancer_id=freelancer_id
        ).delete()
        if deleted:
            logger.info(f"Client {request.user.id} removed freelancer {freelancer_id} from favorites")
            return Response({"is_favorite": False, "freelancer_id": freelancer_id}, status=status.HTTP_200_OK)

        favorite = FavoriteFreelancer.objects.create(client=request.user, freelancer_id=freelancer_id)
        logger.info(f"Client {request.user.id} added freelancer {freelancer_id} to favorites")
        return Response(
            {
                "is_favorite": True,
                "freelancer_id": freelancer_id,
                "favorite": FavoriteFreelancerSerializer(favorite).data,
            },
            status=status.HTTP_201_CREATED,
        )
