# billing/admin.py

from django.contrib import admin

from billing.models import Invoice, Payment


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = (
        "invoice_number",
        "order",
        "invoice_date",
        "status",
        "total_amount",
        "gateway_order_id",
        "paid_at",
    )
    list_filter = ("status",)
    search_fields = ("invoice_number", "gateway_order_id", "gateway_transaction_id", "order__order_number")
    readonly_fields = ("gateway_order_id", "gateway_transaction_id", "payment_details", "paid_at")


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("payment_date", "method", "payment_type", "amount", "reference_number", "session")
    list_filter = ("method", "payment_type")
    search_fields = ("reference_number", "notes", "order__order_number")
