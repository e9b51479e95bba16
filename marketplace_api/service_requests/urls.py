from django.urls import path

from . import views as my_views

urlpatterns = [
    # client
    path('requests/', my_views.CreateServiceRequestClientAPIView.as_view(), name='create-request-client'),
    path('requests/mine/', my_views.ListServiceRequestClientAPIView.as_view(), name='list-requests-client'),
    path('requests/<int:id>/cancel/', my_views.CancelServiceRequestClientAPIView.as_view(), name='cancel-request-client'),
    # provider
    path('requests/open/', my_views.ListOpenServiceRequestProviderAPIView.as_view(), name='list-requests-open'),
    path('requests/<int:id>/', my_views.RetrieveServiceRequestAPIView.as_view(), name='retrieve-request'),
    # admin
    path('admin/requests/', my_views.ListServiceRequestAdminAPIView.as_view(), name='list-requests-admin'),
    path('admin/requests/<int:id>/approve/', my_views.ApproveServiceRequestAdminAPIView.as_view(), name='approve-request-admin'),
    path('admin/requests/<int:id>/reject/', my_views.RejectServiceRequestAdminAPIView.as_view(), name='reject-request-admin'),
]
