"""
Serializers for actor identities and login.

No business logic in serializers - validation only.
"""

from rest_framework import serializers

from apps.users.models import Role, User


class UserSerializer(serializers.ModelSerializer):
    """Actor identity as embedded in login responses."""

    id = serializers.UUIDField(read_only=True)
    role = serializers.ChoiceField(choices=Role.choices, read_only=True)
    displayName = serializers.CharField(source="display_name", read_only=True)

    class Meta:
        model = User
        fields = ["id", "username", "displayName", "role"]


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField(required=True)
    password = serializers.CharField(required=True, write_only=True)
