from django.contrib.auth import get_user_model
from rest_framework import serializers

from permissions.roles import effective_capabilities_for

User = get_user_model()


# ---------------- LOGIN (INPUT ONLY) ----------------
class LoginSerializer(serializers.Serializer):
    """
    Input validation only.
    Authentication is handled in the view.
    """
    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True,
        style={"input_type": "password"},
    )


# ---------------- USER OUTPUT ----------------
class UserSerializer(serializers.ModelSerializer):
    """
    Safe user representation for frontend consumption.

    capabilities lets the PoS screen disable sell/register buttons for
    view-only roles without duplicating the role map client-side.
    """
    display_name = serializers.CharField(read_only=True)
    capabilities = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "display_name",
            "role",
            "capabilities",
        ]

    def get_capabilities(self, obj) -> list[str]:
        return sorted(effective_capabilities_for(obj))
