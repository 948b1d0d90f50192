"""Catalog constants: product lifecycle, units and the category taxonomy."""

from decimal import Decimal

from django.db import models


# Stock quantities are stored with three decimal places.
QUANTITY_PLACES = 3
QUANTITY_STEP = Decimal("0.001")


class ProductStatus(models.TextChoices):
    AVAILABLE = "available", "Available"
    PREPARING = "preparing", "Preparing"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    UNAVAILABLE = "unavailable", "Unavailable"


class Unit(models.TextChoices):
    KILOGRAM = "kg", "Kilogram"
    GRAM = "g", "Gram"
    LITRE = "l", "Litre"
    MILLILITRE = "ml", "Millilitre"
    PIECE = "pcs", "Piece"


class Category(models.TextChoices):
    FRUITS = "fruits", "Fruits"
    VEGETABLES = "vegetables", "Vegetables"
    DAIRY = "dairy", "Dairy"
    MEAT = "meat", "Meat"
    BAKERY = "bakery", "Bakery"
    PRESERVES = "preserves", "Preserves"
    HONEY = "honey", "Honey and bee products"
    HERBS = "herbs", "Herbs and spices"
    BEVERAGES = "beverages", "Beverages"
    OTHER = "other", "Other"


SUBCATEGORIES: dict[str, tuple[str, ...]] = {
    Category.FRUITS: ("apples", "pears", "plums", "blueberries", "strawberries", "raspberries", "other"),
    Category.VEGETABLES: ("tomatoes", "cucumbers", "carrots", "potatoes", "broccoli", "cabbage", "lettuce", "other"),
    Category.DAIRY: ("milk", "cheese", "yoghurt", "butter", "cream", "other"),
    Category.MEAT: ("beef", "pork", "poultry", "other"),
    Category.BAKERY: ("bread", "rolls", "cakes", "other"),
    Category.PRESERVES: ("jams", "juices", "pickles", "other"),
    Category.HONEY: ("multifloral", "honeydew", "linden", "propolis", "pollen", "other"),
    Category.HERBS: ("fresh", "dried", "spice_blends", "other"),
    Category.BEVERAGES: ("juices", "syrups", "herbal_teas", "other"),
    Category.OTHER: ("other",),
}

# Production emissions, kg CO2e per kg of product.
CATEGORY_EMISSION_FACTORS: dict[str, Decimal] = {
    Category.FRUITS: Decimal("0.5"),
    Category.VEGETABLES: Decimal("0.4"),
    Category.DAIRY: Decimal("2.5"),
    Category.MEAT: Decimal("12.0"),
    Category.BAKERY: Decimal("0.8"),
    Category.PRESERVES: Decimal("1.2"),
    Category.HONEY: Decimal("0.3"),
    Category.HERBS: Decimal("0.2"),
    Category.BEVERAGES: Decimal("0.6"),
    Category.OTHER: Decimal("1.0"),
}

DEFAULT_EMISSION_FACTOR = Decimal("1.0")

OUT_OF_STOCK_NOTE = "Out of stock"
BACK_IN_STOCK_NOTE = "Back in stock"
PRODUCT_ADDED_NOTE = "Product added"
