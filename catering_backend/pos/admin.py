# pos/admin.py

from django.contrib import admin

from pos.models import TerminalState


@admin.register(TerminalState)
class TerminalStateAdmin(admin.ModelAdmin):
    """
    Support view of operator terminals; deleting a row resets that terminal.
    """

    list_display = ("user", "updated_at")
    search_fields = ("user__email",)
    readonly_fields = ("user", "state", "created_at", "updated_at")

    def has_add_permission(self, request):
        return False
