from __future__ import annotations

from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from modules.accounts.models import User


class RoleTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Adds the principal's ``role`` and ``email`` claims to issued tokens."""

    @classmethod
    def get_token(cls, user: User):
        token = super().get_token(user)
        token["role"] = user.effective_role
        token["email"] = user.email
        return token


class MeSerializer(serializers.ModelSerializer):
    role = serializers.CharField(source="effective_role", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "role",
            "latitude",
            "longitude",
            "address",
            "phone_number",
        ]
        read_only_fields = fields
