# cash_register/serializers.py

from rest_framework import serializers

from cash_register.models import RegisterSession


class RegisterSessionSerializer(serializers.ModelSerializer):
    operator_name = serializers.CharField(source="operator.display_name", read_only=True)
    closed_by_name = serializers.SerializerMethodField()
    variance = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True, allow_null=True)

    class Meta:
        model = RegisterSession
        fields = [
            "id",
            "operator",
            "operator_name",
            "status",
            "opened_at",
            "opening_balance",
            "closed_at",
            "closing_balance",
            "expected_cash",
            "variance",
            "notes",
            "closed_by",
            "closed_by_name",
        ]
        read_only_fields = fields

    def get_closed_by_name(self, obj) -> str | None:
        return obj.closed_by.display_name if obj.closed_by_id else None


# ---------------- INPUT ----------------
class OpenRegisterInputSerializer(serializers.Serializer):
    opening_balance = serializers.DecimalField(max_digits=12, decimal_places=2)


class CloseRegisterInputSerializer(serializers.Serializer):
    closing_balance = serializers.DecimalField(max_digits=12, decimal_places=2)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ClosePreviewQuerySerializer(serializers.Serializer):
    counted = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)


class ClosePreviewSerializer(serializers.Serializer):
    session_id = serializers.UUIDField()
    opening_balance = serializers.DecimalField(max_digits=12, decimal_places=2)
    expected_cash = serializers.DecimalField(max_digits=12, decimal_places=2)
    counted = serializers.DecimalField(max_digits=12, decimal_places=2, allow_null=True)
    variance = serializers.DecimalField(max_digits=12, decimal_places=2, allow_null=True)
