from django.contrib import admin  # type: ignore

from .models import Conversation, Message


class MessageInline(admin.TabularInline):
    model = Message
    extra = 0
    readonly_fields = ("sender", "content", "message_type", "read_at", "sent_at")


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    list_display = ("id", "client", "freelancer", "booking", "last_message_at")
    search_fields = ("client__email", "freelancer__email")
    inlines = [MessageInline]
