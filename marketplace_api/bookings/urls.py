from django.urls import path

from . import views as my_views

urlpatterns = [
    # participants
    path('bookings/mine/', my_views.ListBookingMineAPIView.as_view(), name='list-bookings-mine'),
    path('bookings/<uuid:id>/', my_views.RetrieveBookingAPIView.as_view(), name='retrieve-booking'),
    # client
    path('bookings/<uuid:id>/cancel/', my_views.CancelBookingClientAPIView.as_view(), name='cancel-booking-client'),
    # provider
    path('bookings/<uuid:id>/<str:action>/', my_views.TransitionBookingProviderAPIView.as_view(), name='transition-booking-provider'),
    # admin
    path('admin/bookings/', my_views.ListBookingAdminAPIView.as_view(), name='list-bookings-admin'),
    path('admin/bookings/<uuid:id>/status/', my_views.UpdateBookingStatusAdminAPIView.as_view(), name='update-booking-status-admin'),
    path('admin/bookings/<uuid:id>/warning/', my_views.AddBookingWarningAdminAPIView.as_view(), name='add-booking-warning-admin'),
    path('admin/bookings/<uuid:id>/risk/recalculate/', my_views.RecalculateRiskAdminAPIView.as_view(), name='recalculate-booking-risk-admin'),
    path('admin/bookings/<uuid:id>/settle/', my_views.SettleBookingAdminAPIView.as_view(), name='settle-booking-admin'),
]
