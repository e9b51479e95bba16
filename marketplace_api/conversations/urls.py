from django.urls import path

from . import views as my_views

urlpatterns = [
    # participants
    path('bookings/<uuid:id>/messages/', my_views.BookingMessagesAPIView.as_view(), name='booking-messages'),
    # admin
    path('admin/bookings/<uuid:id>/system-message/', my_views.SystemMessageAdminAPIView.as_view(), name='booking-system-message-admin'),
]
