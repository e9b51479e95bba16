from django.urls import path

from . import views

urlpatterns = [
    path("wallet/", views.WalletDetailView.as_view(), name="wallet-detail"),
    path("wallet/deposit/", views.WalletDepositView.as_view(), name="wallet-deposit"),
    path("admin/transactions/", views.ListTransactionAdminView.as_view(), name="list-transactions-admin"),
]
