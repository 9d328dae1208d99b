from django.contrib import admin  # type: ignore

from .models import FreelancerVerification, VerificationActionLog


@admin.register(FreelancerVerification)
class FreelancerVerificationAdmin(admin.ModelAdmin):
    list_display = ("freelancer", "legal_name", "id_document_type", "status", "submitted_at", "reviewed_at")
    list_filter = ("status", "id_document_type")
    search_fields = ("freelancer__email", "legal_name")
    exclude = ("address_line1", "address_line2")


@admin.register(VerificationActionLog)
class VerificationActionLogAdmin(admin.ModelAdmin):
    list_display = ("freelancer", "action", "admin", "created_at")
    list_filter = ("action",)
