from django.contrib import admin  # type: ignore

from .models import Report, ReportAdminAction


class ReportAdminActionInline(admin.TabularInline):
    model = ReportAdminAction
    extra = 0


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = ("id", "reporter", "reported_user", "issue_type", "status", "created_at")
    list_filter = ("status", "issue_type")
    search_fields = ("reporter__email", "reported_user__email", "description")
    inlines = [ReportAdminActionInline]
