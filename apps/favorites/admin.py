from django.contrib import admin  # type: ignore

from .models import FavoriteFreelancer


@admin.register(FavoriteFreelancer)
class FavoriteFreelancerAdmin(admin.ModelAdmin):
    list_display = ('client', 'freelancer', 'created_at')
    search_fields = ('client__email', 'freelancer__email')
