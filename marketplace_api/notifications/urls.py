from django.urls import path

from . import views

urlpatterns = [
    path('notifications/', views.ListNotificationsAPIView.as_view(), name='notifications-list'),
    path('notifications/<int:id>/read/', views.MarkNotificationReadAPIView.as_view(), name='notifications-read'),
]
