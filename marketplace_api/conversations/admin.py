from django.contrib import admin
from .models import Conversation, Message


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    list_display = ('id', 'booking', 'client', 'service_provider', 'last_message_at')
    search_fields = ('client__email', 'service_provider__email')


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ('id', 'conversation', 'sender', 'sender_role', 'created_at')
    list_filter = ('sender_role',)
    readonly_fields = ('conversation', 'sender', 'sender_role', 'text', 'attachment', 'created_at')
