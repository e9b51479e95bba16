from django.contrib import admin
from .models import Proposal


@admin.register(Proposal)
class ProposalAdmin(admin.ModelAdmin):
    list_display = ('id', 'service_request', 'service_provider', 'price', 'duration_days', 'status', 'created_at')
    list_filter = ('status',)
    search_fields = ('service_provider__email', 'service_request__title')
