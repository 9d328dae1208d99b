from django.contrib import admin  # type: ignore

from .models import Payout, PayoutAccount, PayoutAuditLog, PayoutSchedule, PayoutSettings


class PayoutAuditLogInline(admin.TabularInline):
    model = PayoutAuditLog
    extra = 0
    readonly_fields = ("action", "old_status", "new_status", "actor", "details", "created_at")


@admin.register(Payout)
class PayoutAdmin(admin.ModelAdmin):
    list_display = ("id", "freelancer", "booking", "amount_pence", "status", "scheduled_date", "processed_date")
    list_filter = ("status",)
    search_fields = ("freelancer__email", "transfer_id")
    inlines = [PayoutAuditLogInline]


@admin.register(PayoutAccount)
class PayoutAccountAdmin(admin.ModelAdmin):
    list_display = ("freelancer", "stripe_account_id", "account_status", "payouts_enabled")
    list_filter = ("account_status", "payouts_enabled")


admin.site.register(PayoutSchedule)
admin.site.register(PayoutSettings)
