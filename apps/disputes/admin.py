from django.contrib import admin  # type: ignore

from .models import Dispute, DisputeAttachment, DisputeAuditLog, DisputeNote


class DisputeAttachmentInline(admin.TabularInline):
    model = DisputeAttachment
    extra = 0


class DisputeNoteInline(admin.TabularInline):
    model = DisputeNote
    extra = 0


@admin.register(Dispute)
class DisputeAdmin(admin.ModelAdmin):
    list_display = ("id", "booking", "raised_by", "category", "status", "resolution_type", "created_at")
    list_filter = ("status", "category", "resolution_type")
    search_fields = ("booking__booking_code", "raised_by__email", "description")
    inlines = [DisputeAttachmentInline, DisputeNoteInline]


@admin.register(DisputeAuditLog)
class DisputeAuditLogAdmin(admin.ModelAdmin):
    list_display = ("dispute", "action", "actor", "created_at")
    list_filter = ("action",)
