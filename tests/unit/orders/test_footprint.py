"""Unit tests for the delivery carbon footprint."""

from decimal import Decimal

import pytest

from modules.orders.footprint import haversine_km, line_co2_kg, order_co2_kg
from modules.products.constants import Category

pytestmark = pytest.mark.unit

KRAKOW = (50.0647, 19.9450)
WARSAW = (52.2297, 21.0122)


class TestHaversine:
    def test_same_point_is_zero(self):
        assert haversine_km(*KRAKOW, *KRAKOW) == 0

    def test_krakow_to_warsaw(self):
        assert haversine_km(*KRAKOW, *WARSAW) == pytest.approx(252, abs=2)

    def test_is_symmetric(self):
        assert haversine_km(*KRAKOW, *WARSAW) == pytest.approx(haversine_km(*WARSAW, *KRAKOW))


class TestLineCo2:
    def test_transport_plus_production(self):
        # 100 km * 0.1 * 2 kg + 2 kg * 0.5 (fruits)
        assert line_co2_kg(100.0, Decimal("2"), Category.FRUITS) == Decimal("21.0")

    def test_meat_factor(self):
        assert line_co2_kg(0.0, Decimal("1"), Category.MEAT) == Decimal("12.0")

    def test_unknown_category_uses_default_factor(self):
        assert line_co2_kg(0.0, Decimal("3"), "minerals") == Decimal("3.0")


class TestOrderCo2:
    def test_sums_lines_and_rounds(self):
        result = order_co2_kg(
            KRAKOW,
            [
                (KRAKOW, Decimal("2"), Category.VEGETABLES),
                (KRAKOW, Decimal("1"), Category.DAIRY),
            ],
        )
        assert result == Decimal("3.30")

    def test_unknown_buyer_location(self):
        assert order_co2_kg(None, [(KRAKOW, Decimal("1"), Category.FRUITS)]) is None

    def test_unknown_product_location(self):
        assert order_co2_kg(KRAKOW, [(None, Decimal("1"), Category.FRUITS)]) is None

    def test_distance_contributes(self):
        near = order_co2_kg(KRAKOW, [(KRAKOW, Decimal("1"), Category.FRUITS)])
        far = order_co2_kg(WARSAW, [(KRAKOW, Decimal("1"), Category.FRUITS)])
        assert far > near
        assert far == pytest.approx(Decimal("25.7"), abs=Decimal("0.3"))
