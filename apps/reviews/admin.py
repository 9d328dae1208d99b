from django.contrib import admin  # type: ignore

from .models import Review


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ("booking", "client", "freelancer", "rating", "is_removed", "created_at")
    list_filter = ("rating", "is_removed")
    search_fields = ("client__email", "freelancer__email", "text")
