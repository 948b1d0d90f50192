from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.accounts.constants import UserRole
from modules.accounts.principal import Principal
from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.dtos import (
    CreateOrderDTO,
    UpdateOrderStatusDTO,
    UpdatePaymentStatusDTO,
)
from modules.orders.models import Order
from modules.orders.views import build_order_service
from modules.products.constants import Category, Unit
from modules.products.dtos import CreateProductDTO
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import ProductService

SEED_PASSWORD = "marketplace123"

# username, role, (latitude, longitude)
SEED_USERS = [
    ("farmer_malopolska", UserRole.FARMER, (50.0647, 19.9450)),
    ("farmer_mazowsze", UserRole.FARMER, (52.2297, 21.0122)),
    ("anna", UserRole.CONSUMER, (52.4064, 16.9252)),
    ("piotr", UserRole.CONSUMER, (54.3520, 18.6466)),
    ("ewa", UserRole.CONSUMER, (51.1079, 17.0385)),
]

# name, category, subcategory, unit, price, quantity
CATALOG = [
    ("Jabłka Szampion", Category.FRUITS, "apples", Unit.KILOGRAM, "6.50", "400"),
    ("Borówki amerykańskie", Category.FRUITS, "blueberries", Unit.KILOGRAM, "24.00", "80"),
    ("Ziemniaki Vineta", Category.VEGETABLES, "potatoes", Unit.KILOGRAM, "3.20", "900"),
    ("Marchew", Category.VEGETABLES, "carrots", Unit.KILOGRAM, "2.80", "500"),
    ("Oscypek", Category.DAIRY, "cheese", Unit.PIECE, "18.00", "120"),
    ("Mleko prosto od krowy", Category.DAIRY, "milk", Unit.LITRE, "4.50", "200"),
    ("Miód lipowy", Category.HONEY, "linden", Unit.PIECE, "45.00", "60"),
    ("Chleb na zakwasie", Category.BAKERY, "bread", Unit.PIECE, "14.00", "40"),
    ("Powidła śliwkowe", Category.PRESERVES, "jams", Unit.PIECE, "16.00", "70"),
    ("Sok jabłkowy tłoczony", Category.BEVERAGES, "juices", Unit.LITRE, "9.00", "150"),
]


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument("--orders", type=int, default=20, help="Orders to place.")

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        admin, users = self._seed_users()
        farmers = [user for user in users if user.role == UserRole.FARMER]
        consumers = [user for user in users if user.role == UserRole.CONSUMER]
        products = self._seed_products(farmers)
        orders_created = self._seed_orders(admin, consumers, products, options["orders"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={len(users) + 1}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self):
        User = get_user_model()
        admin = User.objects.filter(username="admin").first()
        if admin is None:
            admin = User.objects.create_superuser(
                "admin", email="admin@example.com", password="admin123", role=UserRole.ADMIN
            )
        users = []
        for username, role, (latitude, longitude) in SEED_USERS:
            user, created = User.objects.get_or_create(
                username=username,
                defaults={
                    "email": f"{username}@example.com",
                    "role": role,
                    "latitude": latitude,
                    "longitude": longitude,
                },
            )
            if created:
                user.set_password(SEED_PASSWORD)
                user.save(update_fields=["password"])
            users.append(user)
        return admin, users

    def _seed_products(self, farmers) -> list[Product]:
        self.stdout.write("Creating products...")
        service = ProductService(repository=ProductDjangoRepository())
        products: list[Product] = []
        for index, (name, category, subcategory, unit, price, quantity) in enumerate(CATALOG):
            farmer = farmers[index % len(farmers)]
            product = Product.objects.alive().filter(owner=farmer, name=name).first()
            if product is None:
                product = service.create_product(
                    Principal.from_user(farmer),
                    CreateProductDTO(
                        name=name,
                        category=category,
                        subcategory=subcategory,
                        unit=unit,
                        price=Decimal(price),
                        quantity=Decimal(quantity),
                    ),
                )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(self, admin, consumers, products: list[Product], count: int) -> int:
        self.stdout.write("Creating orders...")
        if not consumers or not products:
            self.stdout.write(self.style.WARNING("Skipping orders (no consumers/products)."))
            return 0

        service = build_order_service()
        admin_principal = Principal.from_user(admin)
        # How far each order is pushed along the workflow after checkout.
        targets = [
            (None, 0.25),
            (OrderStatus.PAID, 0.25),
            (OrderStatus.SHIPPED, 0.20),
            (OrderStatus.DELIVERED, 0.20),
            (OrderStatus.CANCELLED, 0.10),
        ]
        statuses = [s for s, _ in targets]
        weights = [w for _, w in targets]

        orders_created = 0
        for i in range(count):
            key = f"seed-order-{i + 1}"
            if Order.objects.filter(idempotency_key=key).exists():
                continue
            consumer = random.choice(consumers)
            lines = random.sample(products, k=random.randint(1, 3))
            order, _ = service.create_order(
                Principal.from_user(consumer),
                CreateOrderDTO.model_validate(
                    {
                        "items": [
                            {"product_id": product.id, "quantity": random.randint(1, 3)}
                            for product in lines
                        ],
                        "shipping_address": {
                            "street": f"ul. Polna {i + 1}",
                            "city": "Kraków",
                            "postal_code": "30-001",
                        },
                        "idempotency_key": key,
                    }
                ),
            )
            orders_created += 1

            target = random.choices(statuses, weights=weights, k=1)[0]
            if target is None:
                continue
            order = service.update_payment_status(
                admin_principal,
                str(order.id),
                UpdatePaymentStatusDTO(payment_status=PaymentStatus.COMPLETED),
            )
            for step in (OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED):
                if target == OrderStatus.PAID:
                    break
                if target == OrderStatus.CANCELLED:
                    service.update_status(
                        admin_principal,
                        str(order.id),
                        UpdateOrderStatusDTO(status=OrderStatus.CANCELLED, note="Seed cancellation"),
                    )
                    break
                order = service.update_status(
                    admin_principal, str(order.id), UpdateOrderStatusDTO(status=step)
                )
                if step == target:
                    break

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return orders_created
