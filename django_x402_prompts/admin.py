from django.contrib import admin

from django_x402_prompts.models import PaymentRecord, Purchase, RequestLog


@admin.register(PaymentRecord)
class PaymentRecordAdmin(admin.ModelAdmin):
    list_display = (
        "transaction_reference",
        "sender_address",
        "amount",
        "status",
        "created",
    )
    readonly_fields = ("transaction_reference", "amount_atomic", "details", "created")
    list_filter = ("status",)
    search_fields = ("transaction_reference", "sender_address")


@admin.register(Purchase)
class PurchaseAdmin(admin.ModelAdmin):
    list_display = ("id", "wallet_address", "transaction_reference", "status", "created", "updated")
    readonly_fields = ("transaction_reference", "created", "updated")
    list_filter = ("status",)
    search_fields = ("wallet_address", "transaction_reference")


@admin.register(RequestLog)
class RequestLogAdmin(admin.ModelAdmin):
    list_display = ("id", "request_type", "status", "created")
    list_filter = ("request_type", "status")
    readonly_fields = ("request_type", "details", "status", "created")
