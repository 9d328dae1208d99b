"""Booking price calculation."""

from __future__ import annotations

from dataclasses import asdict, dataclass

from django.conf import settings  # type: ignore

from apps.catalog.models import Service
from shared.domain.value_objects import percent_of


@dataclass(frozen=True)
class PriceBreakdown:
    base_price_pence: int
    materials_price_pence: int
    travel_price_pence: int
    platform_fee_pence: int
    total_pence: int

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


def platform_fee_percent() -> int:
    return settings.MARKETPLACE.get("PLATFORM_FEE_PERCENT", 10)


def charges_materials(materials_policy: str, client_provides_own_materials: bool) -> bool:
    if materials_policy == Service.MaterialsPolicy.FREELANCER_PROVIDES:
        return True
    if materials_policy == Service.MaterialsPolicy.BOTH:
        return not client_provides_own_materials
    return False


def calculate_booking_price(
    service: Service,
    location_type: str,
    *,
    client_provides_own_materials: bool = False,
) -> PriceBreakdown:
    """Price a booking of ``service``.

    The client pays the service, materials and travel; the platform fee is
    the platform's share of that total and is not added on top.
    """
    base = service.price_for(location_type)
    materials = (
        service.materials_fee_pence
        if charges_materials(service.materials_policy, client_provides_own_materials)
        else 0
    )
    travel = service.travel_fee_pence if location_type == Service.LocationType.FREELANCER_TRAVELS else 0
    subtotal = base + materials + travel
    return PriceBreakdown(
        base_price_pence=base,
        materials_price_pence=materials,
        travel_price_pence=travel,
        platform_fee_pence=percent_of(subtotal, platform_fee_percent()),
        total_pence=subtotal,
    )
