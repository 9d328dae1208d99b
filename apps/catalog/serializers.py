"""Serializers for the catalog domain."""

from __future__ import annotations

from django.db import transaction  # type: ignore
from rest_framework import serializers  # type: ignore

from .models import Service, ServicePackage, ServicePackageItem, Style


class StyleSerializer(serializers.ModelSerializer):
    level = serializers.IntegerField(read_only=True)

    class Meta:
        model = Style
        fields = ["id", "name", "slug", "parent", "description", "is_active", "level"]


class ServiceSerializer(serializers.ModelSerializer):
    freelancer = serializers.ReadOnlyField(source="freelancer_id")
    freelancer_name = serializers.ReadOnlyField(source="freelancer.display_name")
    style_name = serializers.ReadOnlyField(source="style.name")

    class Meta:
        model = Service
        fields = [
            "id",
            "freelancer",
            "freelancer_name",
            "style",
            "style_name",
            "name",
            "description",
            "duration_minutes",
            "base_price_pence",
            "studio_price_pence",
            "mobile_price_pence",
            "materials_fee_pence",
            "materials_policy",
            "materials_description",
            "travel_fee_pence",
            "location_types",
            "is_active",
            "deactivated_by_admin",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ServiceWriteSerializer(serializers.ModelSerializer):
    base_price_pence = serializers.IntegerField(min_value=0, required=False)

    class Meta:
        model = Service
        fields = [
            "style",
            "name",
            "description",
            "duration_minutes",
            "base_price_pence",
            "studio_price_pence",
            "mobile_price_pence",
            "materials_fee_pence",
            "materials_policy",
            "materials_description",
            "travel_fee_pence",
            "location_types",
            "is_active",
        ]

    def validate_location_types(self, value):  # type: ignore
        if not isinstance(value, list) or not value:
            raise serializers.ValidationError("Choose at least one location type.")
        allowed = set(Service.LocationType.values)
        unknown = [item for item in value if item not in allowed]
        if unknown:
            raise serializers.ValidationError(f"Unknown location types: {', '.join(map(str, unknown))}.")
        return list(dict.fromkeys(value))

    def validate(self, attrs):  # type: ignore
        def current(field):
            if field in attrs:
                return attrs[field]
            return getattr(self.instance, field, None)

        location_types = current("location_types") or []
        studio = current("studio_price_pence")
        mobile = current("mobile_price_pence")

        if Service.LocationType.CLIENT_TRAVELS in location_types and studio is None:
            raise serializers.ValidationError(
                {"studio_price_pence": "A studio price is required when clients travel to you."}
            )
        if Service.LocationType.FREELANCER_TRAVELS in location_types and mobile is None:
            raise serializers.ValidationError(
                {"mobile_price_pence": "A mobile price is required when you travel to clients."}
            )

        if current("base_price_pence") is None:
            base = studio if studio is not None else mobile
            if base is None:
                raise serializers.ValidationError({"base_price_pence": "A price is required."})
            attrs["base_price_pence"] = base
        return attrs


class ServiceModerationSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255)


class ServicePackageSerializer(serializers.ModelSerializer):
    freelancer = serializers.ReadOnlyField(source="freelancer_id")
    service_ids = serializers.ListField(
        child=serializers.IntegerField(),
        write_only=True,
        min_length=ServicePackage.MIN_SERVICES,
        max_length=ServicePackage.MAX_SERVICES,
    )
    services = serializers.SerializerMethodField()
    price_summary = serializers.SerializerMethodField()

    class Meta:
        model = ServicePackage
        fields = [
            "id",
            "freelancer",
            "name",
            "description",
            "service_ids",
            "services",
            "discount_percent",
            "discount_amount_pence",
            "valid_until",
            "max_uses",
            "times_used",
            "is_active",
            "price_summary",
            "created_at",
        ]
        read_only_fields = ["times_used", "created_at"]

    def get_services(self, obj: ServicePackage) -> list[dict]:
        return [
            {"id": service.id, "name": service.name, "base_price_pence": service.base_price_pence}
            for service in obj.ordered_services()
        ]

    def get_price_summary(self, obj: ServicePackage) -> dict[str, int]:
        return obj.price_summary()

    def validate_discount_percent(self, value: int) -> int:
        if value > 50:
            raise serializers.ValidationError("Package discount cannot exceed 50%.")
        return value

    def validate_service_ids(self, value: list[int]) -> list[int]:
        if len(set(value)) != len(value):
            raise serializers.ValidationError("A service can appear only once in a package.")
        freelancer = self.context["request"].user
        owned = Service.objects.filter(pk__in=value, freelancer=freelancer, is_active=True)
        if owned.count() != len(value):
            raise serializers.ValidationError("Packages can only include your own active services.")
        return value

    @transaction.atomic
    def create(self, validated_data):  # type: ignore
        service_ids = validated_data.pop("service_ids")
        package = ServicePackage.objects.create(**validated_data)
        self._set_items(package, service_ids)
        return package

    @transaction.atomic
    def update(self, instance, validated_data):  # type: ignore
        service_ids = validated_data.pop("service_ids", None)
        instance = super().update(instance, validated_data)
        if service_ids is not None:
            instance.items.all().delete()
            self._set_items(instance, service_ids)
        return instance

    @staticmethod
    def _set_items(package: ServicePackage, service_ids: list[int]) -> None:
        ServicePackageItem.objects.bulk_create(
            ServicePackageItem(package=package, service_id=service_id, position=position)
            for position, service_id in enumerate(service_ids)
        )
