# cash_register/admin.py

from django.contrib import admin

from cash_register.models import RegisterSession


@admin.register(RegisterSession)
class RegisterSessionAdmin(admin.ModelAdmin):
    list_display = (
        "operator",
        "status",
        "opened_at",
        "opening_balance",
        "closed_at",
        "closing_balance",
        "expected_cash",
    )
    list_filter = ("status",)
    search_fields = ("operator__email", "operator__first_name", "notes")
    readonly_fields = (
        "operator",
        "opened_at",
        "opening_balance",
        "closed_at",
        "closing_balance",
        "expected_cash",
        "closed_by",
        "status",
    )

    def has_delete_permission(self, request, obj=None):
        return False
