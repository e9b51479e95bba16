from django.contrib import admin
from .models import Wallet, Transaction


@admin.register(Wallet)
class WalletAdmin(admin.ModelAdmin):
    list_display = ('id', 'owner', 'balance', 'created_at', 'updated_at')
    search_fields = ('owner__email',)
    readonly_fields = ('owner', 'balance', 'created_at', 'updated_at')


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ('id', 'wallet', 'type', 'amount', 'status', 'created_at')
    list_filter = ('type', 'status')
    search_fields = ('wallet__owner__email', 'description')

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
