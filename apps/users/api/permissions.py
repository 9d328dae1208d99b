"""Permission classes shared by the marketplace API."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore


def is_platform_admin(user) -> bool:
    if not user or not user.is_authenticated:
        return False
    if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
        return True
    return hasattr(user, "is_platform_admin") and user.is_platform_admin()


class IsPlatformAdmin(permissions.BasePermission):
    """
    Only platform admins (role=admin, staff or superuser).

    Used by the moderation endpoints and by admin-only actions in the
    domain apps.
    """

    message = "Admin access required."

    def has_permission(self, request, view) -> bool:  # type: ignore
        return is_platform_admin(request.user)


class IsFreelancer(permissions.BasePermission):
    message = "Only freelancers can perform this action."

    def has_permission(self, request, view) -> bool:  # type: ignore
        user = request.user
        return bool(user.is_authenticated and hasattr(user, "is_freelancer") and user.is_freelancer())


class IsClient(permissions.BasePermission):
    message = "Only clients can perform this action."

    def has_permission(self, request, view) -> bool:  # type: ignore
        user = request.user
        return bool(user.is_authenticated and hasattr(user, "is_client") and user.is_client())


class IsActiveAccount(permissions.BasePermission):
    """Suspended or deactivated accounts may read but not write."""

    message = "Your account is suspended."

    def has_permission(self, request, view) -> bool:  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        user = request.user
        return bool(user.is_authenticated and getattr(user, "is_account_active", False))


class IsFreelancerOrReadOnly(permissions.BasePermission):
    """Anyone can read; writes require an active freelancer account."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        user = request.user
        if not user.is_authenticated:
            return False
        if is_platform_admin(user):
            return True
        return hasattr(user, "is_freelancer") and user.is_freelancer()


class IsOwnerFreelancer(permissions.BasePermission):
    """
    Object-level permission: the object's ``freelancer`` must be the
    current user, or the user is a platform admin.
    """

    def has_object_permission(self, request, view, obj) -> bool:  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        user = request.user
        if is_platform_admin(user):
            return True
        return getattr(obj, "freelancer_id", None) == user.id
