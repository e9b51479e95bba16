from django.urls import path

from . import views as my_views

urlpatterns = [
    # provider + client
    path('requests/<int:request_id>/proposals/', my_views.RequestProposalsAPIView.as_view(), name='request-proposals'),
    # provider
    path('proposals/mine/', my_views.ListProposalProviderAPIView.as_view(), name='list-proposals-provider'),
    path('proposals/attachments/', my_views.UploadAttachmentProviderAPIView.as_view(), name='upload-attachment'),
    path('proposals/attachments/<path:attachment_id>/', my_views.DeleteAttachmentProviderAPIView.as_view(), name='delete-attachment'),
    path('proposals/<int:id>/', my_views.RetrieveUpdateProposalProviderAPIView.as_view(), name='retrieve-update-proposal-provider'),
    path('proposals/<int:id>/cancel/', my_views.CancelProposalProviderAPIView.as_view(), name='cancel-proposal-provider'),
    # admin
    path('admin/proposals/', my_views.ListProposalAdminAPIView.as_view(), name='list-proposals-admin'),
    path('admin/proposals/<int:id>/approve/', my_views.ApproveProposalAdminAPIView.as_view(), name='approve-proposal-admin'),
    path('admin/proposals/<int:id>/reject/', my_views.RejectProposalAdminAPIView.as_view(), name='reject-proposal-admin'),
]
