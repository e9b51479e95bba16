from rest_framework.permissions import BasePermission


class IsClient(BasePermission):
    message = "Only clients can perform this action."

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.is_client)


class IsServiceProvider(BasePermission):
    message = "Only service providers can perform this action."

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.is_service_provider)


class IsMarketplaceAdmin(BasePermission):
    """
    Admin role or Django staff. Used for moderation and booking overrides.
    """
    message = "Only administrators can perform this action."

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.is_marketplace_admin)
