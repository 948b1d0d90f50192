"""Carbon footprint of an order's delivery.

``co2 = distance_km * TRANSPORT_FACTOR * weight_kg + weight_kg * category_factor``
summed over the order lines, where the ordered quantity is taken as the
weight in kilograms and the distance is the great-circle distance between
the buyer and the product's origin.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Tuple

from modules.products.constants import CATEGORY_EMISSION_FACTORS, DEFAULT_EMISSION_FACTOR

EARTH_RADIUS_KM = 6371.0

# kg CO2e per km per kg transported.
TRANSPORT_EMISSION_FACTOR = Decimal("0.1")

Coordinates = Tuple[float, float]


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def line_co2_kg(distance_km: float, weight_kg: Decimal, category: str) -> Decimal:
    factor = CATEGORY_EMISSION_FACTORS.get(category, DEFAULT_EMISSION_FACTOR)
    distance = Decimal(str(distance_km))
    return distance * TRANSPORT_EMISSION_FACTOR * weight_kg + weight_kg * factor


def order_co2_kg(
    buyer: Optional[Coordinates],
    lines: Iterable[Tuple[Optional[Coordinates], Decimal, str]],
) -> Optional[Decimal]:
    """Total for ``(origin, weight_kg, category)`` lines, 2 dp.

    ``None`` when the buyer or any origin location is unknown.
    """
    if buyer is None:
        return None
    total = Decimal("0")
    for origin, weight_kg, category in lines:
        if origin is None:
            return None
        distance = haversine_km(buyer[0], buyer[1], origin[0], origin[1])
        total += line_co2_kg(distance, weight_kg, category)
    return total.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
