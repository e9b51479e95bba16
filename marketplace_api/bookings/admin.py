from django.contrib import admin
from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ('id', 'service_request', 'client', 'service_provider', 'price', 'status', 'payment_status', 'risk_score')
    list_filter = ('status', 'payment_status')
    search_fields = ('client__email', 'service_provider__email', 'service_request__title')
    readonly_fields = ('timeline', 'history_logs', 'warnings', 'payment_status')
