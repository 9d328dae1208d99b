from django.contrib import admin  # type: ignore

from .models import Payment, PaymentWebhookEvent


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("payment_intent_id", "booking", "amount_pence", "status", "escrow_status", "created_at")
    list_filter = ("status", "escrow_status")
    search_fields = ("payment_intent_id", "charge_id", "booking__booking_code")


@admin.register(PaymentWebhookEvent)
class PaymentWebhookEventAdmin(admin.ModelAdmin):
    list_display = ("event_id", "event_type", "processed_at", "created_at")
    list_filter = ("event_type",)
    search_fields = ("event_id",)
