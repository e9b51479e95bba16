import logging
import time

logger = logging.getLogger('audit')


class RequestAuditLoggingMiddleware:
    """
    One ``audit`` log line per API call: actor and role, method, path, status,
    duration and client IP. Server errors are logged at ERROR.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        started = time.monotonic()
        response = self.get_response(request)
        elapsed_ms = (time.monotonic() - started) * 1000

        user = getattr(request, 'user', None)
        if user is not None and user.is_authenticated:
            actor = f"{user.email} ({user.role})"
        else:
            actor = "Anonymous"

        level = logging.ERROR if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            f"{actor} - {request.method} {request.get_full_path()} - {response.status_code} "
            f"- {elapsed_ms:.0f}ms - IP: {self.get_client_ip(request)}",
        )
        return response

    def get_client_ip(self, request):
        forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
        if forwarded:
            return forwarded.split(',')[0].strip()
        return request.META.get('REMOTE_ADDR')
