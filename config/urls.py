"""URL configuration for the Braida marketplace.

The `urlpatterns` list routes URLs to views. It includes both Django admin
and application-level routers provided by Django Rest Framework and each app.
"""
from django.contrib import admin  # type: ignore
from django.urls import path, include  # type: ignore
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView  # type: ignore

# API versioning. v1 is our initial version; future versions can be added here.

urlpatterns = [
    path('admin/', admin.site.urls),
    # Application URLs
    path('api/v1/auth/', include(('apps.users.auth_urls', 'auth'), namespace='auth')),
    path('api/v1/users/', include('apps.users.urls')),
    path('api/v1/catalog/', include('apps.catalog.urls')),
    path('api/v1/availability/', include('apps.availability.urls')),
    path('api/v1/policies/', include('apps.policies.urls')),
    path('api/v1/bookings/', include('apps.bookings.urls')),
    path('api/v1/payments/', include('apps.finances.urls')),
    path('api/v1/payouts/', include('apps.payouts.urls')),
    path('api/v1/disputes/', include('apps.disputes.urls')),
    path('api/v1/coupons/', include('apps.coupons.urls')),
    path('api/v1/reviews/', include('apps.reviews.urls')),
    path('api/v1/favorites/', include('apps.favorites.urls')),
    path('api/v1/notifications/', include('apps.notifications.urls')),
    path('api/v1/analytics/', include('apps.analytics.urls')),
    path('api/v1/conversations/', include('apps.conversations.urls')),
    path('api/v1/reports/', include('apps.reports.urls')),
    path('api/v1/verification/', include('apps.verification.urls')),
    # Admin moderation API
    path('api/v1/admin/', include('apps.users.api.urls')),
    # API schema and docs
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
]
