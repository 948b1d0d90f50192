from django.db import models


class UserRole(models.TextChoices):
    CONSUMER = "consumer", "Consumer"
    FARMER = "farmer", "Farmer"
    ADMIN = "admin", "Admin"
