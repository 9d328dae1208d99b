"""Model definition for favorites.

``FavoriteFreelancer`` is a bookmark a client keeps for a freelancer.
Duplicates are prevented via a unique constraint on the pair.
"""

from __future__ import annotations

from django.db import models  # type: ignore


class FavoriteFreelancer(models.Model):
    """A client's favorite freelancer."""

    client = models.ForeignKey(
        'users.CustomUser', on_delete=models.CASCADE, related_name='favorite_freelancers'
    )
    freelancer = models.ForeignKey(
        'users.CustomUser', on_delete=models.CASCADE, related_name='favorited_by'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('client', 'freelancer')
        ordering = ['-created_at']

    def __str__(self) -> str:
        return f"Favorite freelancer {self.freelancer_id} of client {self.client_id}"
