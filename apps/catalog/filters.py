"""FilterSet definitions for the public service listing."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Service, Style


class ServiceFilterSet(django_filters.FilterSet):
    """Filters used by the service list: freelancer, style subtree,
    location type, price range and the freelancer's city."""

    freelancer = django_filters.NumberFilter(field_name="freelancer_id")
    style = django_filters.NumberFilter(method="filter_style")
    location_type = django_filters.ChoiceFilter(
        choices=Service.LocationType.choices,
        method="filter_location_type",
    )
    price_min = django_filters.NumberFilter(field_name="base_price_pence", lookup_expr="gte")
    price_max = django_filters.NumberFilter(field_name="base_price_pence", lookup_expr="lte")
    city = django_filters.CharFilter(field_name="freelancer__freelancer_profile__city", lookup_expr="iexact")
    is_active = django_filters.BooleanFilter(field_name="is_active")

    class Meta:
        model = Service
        fields = ["freelancer", "style", "location_type", "city", "is_active"]

    def filter_style(self, queryset, name, value):  # type: ignore
        style = Style.objects.filter(pk=value).first()
        if style is None:
            return queryset.none()
        return queryset.filter(style__in=style.get_descendants(include_self=True))

    def filter_location_type(self, queryset, name, value):  # type: ignore
        if not value:
            return queryset
        return queryset.filter(location_types__icontains=value)
