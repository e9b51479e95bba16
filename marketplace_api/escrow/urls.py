from django.urls import path

from .views import AcceptProposalClientAPIView

urlpatterns = [
	path('proposals/<int:id>/accept/', AcceptProposalClientAPIView.as_view(), name='accept-proposal-client'),
]
