from django.contrib import admin
from django.urls import path, include
from rest_framework import permissions
from drf_yasg.views import get_schema_view
from drf_yasg import openapi

schema_view = get_schema_view(
    openapi.Info(
        title="Marketplace API",
        default_version='v1',
        description="Service requests, proposals and escrow-backed bookings",
    ),
    public=True,
    permission_classes=(permissions.AllowAny,),
)

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include('accounts.urls')),
    path('api/', include('service_requests.urls')),
    path('api/', include('escrow.urls')),
    path('api/', include('proposals.urls')),
    # before bookings.urls, whose bookings/<id>/<action>/ also matches messages/
    path('api/', include('conversations.urls')),
    path('api/', include('bookings.urls')),
    path('api/', include('wallets.urls')),
    path('api/', include('notifications.urls')),

    # swagger/openapi routes
    path('swagger', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('redoc/', schema_view.with_ui('redoc', cache_timeout=0), name='schema-redoc'),
    path('openapi.json/', schema_view.without_ui(cache_timeout=0), name='schema-json'),
]
