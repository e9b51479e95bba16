from django.contrib import admin
from .models import ServiceRequest


@admin.register(ServiceRequest)
class ServiceRequestAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'client', 'budget', 'status', 'created_at')
    list_filter = ('status',)
    search_fields = ('title', 'client__email')
